import os
import re
import sys
import json
import time
import uuid
import logging
import threading

import stripe
from flask import Flask, request, jsonify, redirect, g
from dotenv import load_dotenv
from werkzeug.middleware.proxy_fix import ProxyFix

try:
    import sentry_sdk
except ImportError:
    sentry_sdk = None
import firebase_admin
from firebase_admin import credentials, auth, firestore

from skyfall_backend.config import (
    env_flag,
    load_config,
    parse_csv_env,
    parse_price_bonus_map,
    safe_int_env,
)
from skyfall_backend.logging_config import configure_logging, get_logger, log_structured
from skyfall_backend.repositories import purchases_repo, rate_limit_repo, users_repo
from skyfall_backend.services import (
    auth_service,
    catalog_api_service,
    email_service,
    event_logger,
    events_api_service,
    payments_api_service,
    rate_limit_service,
    referral_api_service,
    verification_api_service,
)

load_dotenv()
CONFIG = load_config()
configure_logging(CONFIG.log_level)
logger = get_logger()

app = Flask(__name__)
app.secret_key = CONFIG.flask_secret_key or os.urandom(32).hex()
# Number of reverse proxies in front of the app that append to X-Forwarded-For.
TRUSTED_PROXY_COUNT = safe_int_env('TRUSTED_PROXY_COUNT', 1, minimum=0, maximum=5)
if TRUSTED_PROXY_COUNT:
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=TRUSTED_PROXY_COUNT, x_proto=TRUSTED_PROXY_COUNT)


def log_event(level, event, **fields):
    log_structured(logger, level, event, **fields)


# --- Firebase Setup ---
db = None
firebase_init_error = ''
try:
    if os.path.exists('firebase-credentials.json'):
        cred = credentials.Certificate('firebase-credentials.json')
    else:
        firebase_creds_raw = (os.getenv('FIREBASE_CREDENTIALS', '') or '').strip()
        if not firebase_creds_raw:
            raise ValueError("FIREBASE_CREDENTIALS is not set and firebase-credentials.json was not found.")
        cred = credentials.Certificate(json.loads(firebase_creds_raw))
    if not firebase_admin._apps:
        firebase_admin.initialize_app(cred)
    db = firestore.client()
except Exception as e:
    firebase_init_error = str(e)
    logger.info(f"⚠️ Firebase initialization skipped: {firebase_init_error}")

# --- Stripe Setup ---
stripe.api_key = os.getenv('STRIPE_SECRET_KEY')
STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET', '')
CHECKOUT_SUCCESS_URL = CONFIG.checkout_success_url
CHECKOUT_CANCEL_URL = CONFIG.checkout_cancel_url
# Stripe price id -> bonus attempts credited by a one-time purchase.
PRICE_BONUS_ATTEMPTS = parse_price_bonus_map(os.getenv('PRICE_BONUS_ATTEMPTS', ''))

# --- Email verification ---
PUBLIC_BASE_URL = CONFIG.public_base_url
EMAIL_VERIFIED_REDIRECT_URL = CONFIG.email_verified_redirect_url
EMAIL_VERIFICATION_TTL_SECONDS = safe_int_env('EMAIL_VERIFICATION_TTL_SECONDS', 86400, minimum=300, maximum=7 * 86400)
BREVO_API_KEY = CONFIG.brevo_api_key
BREVO_SENDER_EMAIL = CONFIG.brevo_sender_email
BREVO_SENDER_NAME = CONFIG.brevo_sender_name

# --- Referral rewards and signup throttling ---
REFERRAL_BONUS_ATTEMPTS = safe_int_env('REFERRAL_BONUS_ATTEMPTS', 3, minimum=1, maximum=1000)
SIGNUP_MAX_PER_HOUR = safe_int_env('SIGNUP_MAX_PER_HOUR', 3, minimum=1, maximum=1000)
SIGNUP_MAX_PER_DAY = safe_int_env('SIGNUP_MAX_PER_DAY', 5, minimum=1, maximum=10000)
REFERRAL_MAX_PER_HOUR = safe_int_env('REFERRAL_MAX_PER_HOUR', 3, minimum=1, maximum=1000)
REFERRAL_MAX_PER_DAY = safe_int_env('REFERRAL_MAX_PER_DAY', 10, minimum=1, maximum=10000)

# --- Fixed-window request limits ---
CHECKOUT_RATE_LIMIT_WINDOW_SECONDS = safe_int_env('CHECKOUT_RATE_LIMIT_WINDOW_SECONDS', 600, minimum=10, maximum=86400)
CHECKOUT_RATE_LIMIT_MAX_REQUESTS = safe_int_env('CHECKOUT_RATE_LIMIT_MAX_REQUESTS', 10, minimum=1, maximum=100)
RESEND_VERIFICATION_RATE_LIMIT_WINDOW_SECONDS = safe_int_env('RESEND_VERIFICATION_RATE_LIMIT_WINDOW_SECONDS', 3600, minimum=60, maximum=86400)
RESEND_VERIFICATION_RATE_LIMIT_MAX_REQUESTS = safe_int_env('RESEND_VERIFICATION_RATE_LIMIT_MAX_REQUESTS', 3, minimum=1, maximum=50)
EVENTS_RATE_LIMIT_WINDOW_SECONDS = safe_int_env('EVENTS_RATE_LIMIT_WINDOW_SECONDS', 60, minimum=10, maximum=3600)
EVENTS_RATE_LIMIT_MAX_REQUESTS = safe_int_env('EVENTS_RATE_LIMIT_MAX_REQUESTS', 120, minimum=10, maximum=5000)
RATE_LIMIT_EVENTS = {}
RATE_LIMIT_LOCK = threading.Lock()
RATE_LIMIT_COUNTER_COLLECTION = rate_limit_repo.COUNTER_COLLECTION
RATE_LIMIT_FIRESTORE_ENABLED = env_flag('RATE_LIMIT_FIRESTORE_ENABLED', '1')
RATE_LIMIT_LOG_NAMES = {'checkout', 'resend_verification', 'events', 'signup', 'referral'}

CORS_ALLOWED_ORIGINS = {
    origin.lower() for origin in parse_csv_env('CORS_ALLOWED_ORIGINS', default=(
        'https://topseat.us',
        'https://www.topseat.us',
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ))
}


def apply_cors_headers(response):
    origin = str(request.headers.get('Origin', '') or '').strip()
    if not origin or origin.lower() not in CORS_ALLOWED_ORIGINS:
        return response
    response.headers['Access-Control-Allow-Origin'] = origin
    response.headers['Vary'] = 'Origin'
    response.headers['Access-Control-Allow-Headers'] = 'Authorization, Content-Type, Stripe-Signature'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
    return response


@app.before_request
def handle_options_preflight():
    if request.method == 'OPTIONS':
        return apply_cors_headers(app.make_default_options_response())


@app.before_request
def attach_request_context():
    request_id = str(request.headers.get('X-Request-ID', '') or '').strip()[:120] or uuid.uuid4().hex
    g.request_id = request_id
    if not sentry_sdk:
        return
    try:
        scope = sentry_sdk.get_current_scope()
        scope.set_tag('request.id', request_id)
        scope.set_tag('route.path', request.path)
        scope.set_tag('route.method', request.method)
        scope.set_tag('route.auth_header_present', 'true' if request.headers.get('Authorization') else 'false')
    except Exception as exc:
        logger.debug(f"Could not tag Sentry scope: {exc}")


@app.after_request
def attach_response_context(response):
    request_id = str(getattr(g, 'request_id', '') or '').strip()
    if request_id:
        response.headers['X-Request-ID'] = request_id
    return apply_cors_headers(response)


@app.errorhandler(404)
def handle_not_found(_error):
    return jsonify({'error': 'Not found'}), 404


@app.errorhandler(405)
def handle_method_not_allowed(_error):
    return jsonify({'error': 'Method not allowed'}), 405


# =============================================
# USERS, PURCHASES, SUBSCRIPTIONS
# =============================================

def build_default_user_data(uid, email):
    """Return the canonical default user document structure."""
    now_ts = time.time()
    return {
        'uid': uid,
        'email': email,
        'bonusAttempts': 0,
        'subscriptionStatus': 'none',
        'emailVerified': False,
        'referralCount': 0,
        'referralRewarded': False,
        'createdAt': now_ts,
        'updatedAt': now_ts,
    }


def ensure_user_doc(uid, email=''):
    """Create the user doc with defaults when it does not exist yet. Returns its ref."""
    user_ref = users_repo.doc_ref(db, uid)
    if not user_ref.get().exists:
        user_ref.set(build_default_user_data(uid, email))
        logger.info(f"New user doc created: {uid}")
    return user_ref


def grant_bonus_attempts(uid, amount, extra_updates=None):
    """Credit bonus attempts with an atomic increment."""
    user_ref = ensure_user_doc(uid)
    updates = {
        'bonusAttempts': firestore.Increment(int(amount)),
        'updatedAt': time.time(),
    }
    updates.update(extra_updates or {})
    user_ref.update(updates)
    log_event(logging.INFO, 'bonus_attempts_granted', uid=uid, amount=int(amount))


def set_subscription_status(uid, status, customer_id='', subscription_id=''):
    user_ref = ensure_user_doc(uid)
    updates = {
        'subscriptionStatus': status,
        'updatedAt': time.time(),
    }
    if customer_id:
        updates['stripeCustomerId'] = customer_id
    if subscription_id:
        updates['stripeSubscriptionId'] = subscription_id
    user_ref.update(updates)
    log_event(logging.INFO, 'subscription_status_set', uid=uid, status=status)


def find_uid_by_stripe_customer(customer_id):
    doc = users_repo.find_by_stripe_customer_id(db, customer_id)
    return doc.id if doc is not None else ''


def resolve_bonus_attempts(metadata):
    try:
        amount = int(str(metadata.get('bonusAttempts', '') or '0').strip())
    except ValueError:
        amount = 0
    if amount > 0:
        return amount
    return int(PRICE_BONUS_ATTEMPTS.get(str(metadata.get('priceId', '') or ''), 0))


def purchase_record_exists_for_session(stripe_session_id):
    if not stripe_session_id:
        return False
    if purchases_repo.get_doc(db, stripe_session_id).exists:
        return True
    return purchases_repo.find_by_session_id(db, stripe_session_id) is not None


def build_purchase_record(uid, session, bonus_attempts):
    metadata = session.get('metadata', {}) or {}
    return {
        'uid': uid,
        'priceId': metadata.get('priceId', ''),
        'bonusAttempts': int(bonus_attempts),
        'mode': session.get('mode', 'payment'),
        'amount_total': session.get('amount_total', 0),
        'currency': session.get('currency', ''),
        'stripe_session_id': session.get('id', ''),
        'created_at': time.time(),
    }


def grant_purchase_attempts(uid, session, bonus_attempts):
    """Record the purchase and credit the attempts in one transaction.

    Returns False when the session already has a purchase record, so a retried
    webhook can never credit twice and a failed commit leaves nothing behind.
    """
    stripe_session_id = session.get('id', '')
    purchase_ref = purchases_repo.doc_ref(db, stripe_session_id)
    user_ref = users_repo.doc_ref(db, uid)
    record = build_purchase_record(uid, session, bonus_attempts)
    transaction = db.transaction()

    @firestore.transactional
    def _txn(txn):
        if purchase_ref.get(transaction=txn).exists:
            return False
        user_snapshot = user_ref.get(transaction=txn)
        if user_snapshot.exists:
            txn.update(user_ref, {
                'bonusAttempts': firestore.Increment(int(bonus_attempts)),
                'updatedAt': record['created_at'],
            })
        else:
            user_data = build_default_user_data(uid, '')
            user_data['bonusAttempts'] = int(bonus_attempts)
            txn.set(user_ref, user_data)
        txn.set(purchase_ref, record)
        return True

    granted = _txn(transaction)
    if granted:
        log_event(logging.INFO, 'bonus_attempts_granted', uid=uid, amount=int(bonus_attempts), session_id=stripe_session_id)
        logger.info(f"📝 Saved purchase record for user {uid}: {bonus_attempts} attempts")
    return granted


# =============================================
# HELPER FUNCTIONS
# =============================================

def verify_firebase_token(request):
    return auth_service.verify_firebase_token(request, auth_module=auth, logger=logger)


def resolve_uid(decoded_token, fallback=''):
    return auth_service.resolve_uid(decoded_token, fallback)


def get_client_ip(request):
    return request.remote_addr or 'unknown'


def check_rate_limit(key, limit, window_seconds):
    return rate_limit_service.check_rate_limit(
        key,
        limit,
        window_seconds,
        firestore_enabled=RATE_LIMIT_FIRESTORE_ENABLED,
        db=db,
        firestore_module=firestore,
        counter_collection=RATE_LIMIT_COUNTER_COLLECTION,
        in_memory_events=RATE_LIMIT_EVENTS,
        in_memory_lock=RATE_LIMIT_LOCK,
        time_module=time,
    )


def check_timestamp_throttle(key, windows, collection_name, record=True):
    return rate_limit_service.check_timestamp_throttle(
        key,
        windows,
        db=db,
        collection_name=collection_name,
        time_module=time,
        record=record,
    )


def record_throttle_timestamp(key, windows, collection_name):
    return rate_limit_service.record_timestamp(
        key,
        windows,
        db=db,
        collection_name=collection_name,
        time_module=time,
    )


def build_rate_limited_response(message, retry_after):
    response = jsonify({
        'error': message,
        'retry_after_seconds': int(max(1, retry_after)),
    })
    response.status_code = 429
    response.headers['Retry-After'] = str(int(max(1, retry_after)))
    return response


def normalize_rate_limit_key_part(value, fallback='anon', max_len=120):
    raw = str(value or '').strip().lower()
    if not raw:
        return fallback
    safe = re.sub(r'[^a-z0-9_.:@-]+', '_', raw)
    return safe[:max_len] if safe else fallback


def log_rate_limit_hit(limit_name, retry_after=0):
    return rate_limit_service.log_rate_limit_hit(
        limit_name,
        retry_after=retry_after,
        db=db,
        allowed_names=RATE_LIMIT_LOG_NAMES,
        logger=logger,
        time_module=time,
    )


def send_verification_email(to_email, link):
    subject, html_content, text_content = email_service.build_verification_email(link, app_name=BREVO_SENDER_NAME)
    return email_service.send_transactional_email(
        to_email,
        subject,
        html_content,
        text_content,
        api_key=BREVO_API_KEY,
        sender_email=BREVO_SENDER_EMAIL,
        sender_name=BREVO_SENDER_NAME,
        logger=logger,
    )


def get_user_context(uid, email=None):
    return event_logger.get_user_context(uid, email, db=db, logger=logger)


def log_game_event(event_type, **fields):
    return event_logger.log_event(event_type, db=db, firestore_module=firestore, logger=logger, **fields)


# =============================================
# ROUTE IMPLEMENTATIONS (wired up in blueprints)
# =============================================

APP_CTX = sys.modules[__name__]


def create_checkout_session_impl():
    return payments_api_service.create_checkout_session(APP_CTX, request)


def stripe_webhook_impl():
    return payments_api_service.stripe_webhook(APP_CTX, request)


def track_signup_impl():
    return referral_api_service.track_signup(APP_CTX, request)


def process_referral_reward_impl():
    return referral_api_service.process_referral_reward(APP_CTX, request)


def send_verification_email_impl():
    return verification_api_service.send_verification_email(APP_CTX, request)


def verify_email_impl():
    return verification_api_service.verify_email(APP_CTX, request)


def resend_verification_impl():
    return verification_api_service.resend_verification(APP_CTX, request)


def ingest_game_event_impl():
    return events_api_service.ingest_game_event(APP_CTX, request)


def search_schools_impl():
    return catalog_api_service.search_schools(APP_CTX, request)


def get_school_impl(school_id):
    return catalog_api_service.get_school(APP_CTX, school_id)


def list_themes_impl():
    return catalog_api_service.list_themes(APP_CTX, request)


def get_theme_impl(theme_id):
    return catalog_api_service.get_theme(APP_CTX, theme_id)


def resolve_theme_impl():
    return catalog_api_service.resolve_theme(APP_CTX, request)


# =============================================
# HEALTH CHECK
# =============================================
@app.route('/health')
@app.route('/healthz')
def health():
    return jsonify({'status': 'ok'}), 200


from skyfall_backend.blueprints import (  # noqa: E402
    catalog_bp,
    events_bp,
    payments_bp,
    referral_bp,
    verification_bp,
)

app.register_blueprint(payments_bp)
app.register_blueprint(verification_bp)
app.register_blueprint(referral_bp)
app.register_blueprint(events_bp)
app.register_blueprint(catalog_bp)
