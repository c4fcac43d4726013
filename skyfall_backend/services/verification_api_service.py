"""Business logic handlers for the email verification flow."""

import re
import secrets

from skyfall_backend.repositories import users_repo, verification_repo

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
TOKEN_RE = re.compile(r'^[A-Za-z0-9_-]{16,128}$')
TOKEN_BYTES = 32


def normalize_email(raw_email):
    email = str(raw_email or '').strip().lower()[:254]
    return email if EMAIL_RE.match(email) else ''


def generate_token():
    return secrets.token_urlsafe(TOKEN_BYTES)


def build_verification_link(app_ctx, token):
    return f"{app_ctx.PUBLIC_BASE_URL}/api/verify-email?token={token}"


def retire_pending_tokens(app_ctx, uid, now_ts):
    """Expire earlier unverified links so only the newest email works."""
    for doc in verification_repo.list_pending_by_uid(app_ctx.db, uid):
        verification_repo.update_doc(app_ctx.db, doc.id, {'expiresAt': now_ts, 'supersededAt': now_ts})


def issue_verification(app_ctx, uid, email):
    """Store a fresh token and email the link. Returns ``(ok, message)``."""
    now_ts = app_ctx.time.time()
    retire_pending_tokens(app_ctx, uid, now_ts)
    token = generate_token()
    verification_repo.set_doc(app_ctx.db, token, {
        'uid': uid,
        'email': email,
        'token': token,
        'createdAt': now_ts,
        'expiresAt': now_ts + app_ctx.EMAIL_VERIFICATION_TTL_SECONDS,
        'verified': False,
    })
    users_repo.set_doc(app_ctx.db, uid, {
        'uid': uid,
        'email': email,
        'emailVerified': False,
        'updatedAt': now_ts,
    }, merge=True)

    ok, detail = app_ctx.send_verification_email(email, build_verification_link(app_ctx, token))
    if not ok:
        return False, detail
    app_ctx.log_event(app_ctx.logging.INFO, 'verification_email_sent', uid=uid, expires_at=now_ts + app_ctx.EMAIL_VERIFICATION_TTL_SECONDS)
    return True, 'sent'


def send_verification_email(app_ctx, request):
    decoded_token = app_ctx.verify_firebase_token(request)
    if not decoded_token:
        return app_ctx.jsonify({'error': 'Unauthorized'}), 401

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    uid = decoded_token['uid']
    email = normalize_email(data.get('email', '') or decoded_token.get('email', ''))
    if not email:
        return app_ctx.jsonify({'error': 'A valid email is required'}), 400
    if app_ctx.db is None:
        return app_ctx.jsonify({'error': 'Database not configured'}), 500

    try:
        ok, detail = issue_verification(app_ctx, uid, email)
    except Exception as e:
        app_ctx.logger.error(f"Error issuing verification for {uid}: {e}")
        return app_ctx.jsonify({'error': 'Could not send verification email'}), 500
    if not ok:
        return app_ctx.jsonify({'error': f"Could not send verification email: {detail}"}), 500
    return app_ctx.jsonify({'ok': True, 'message': 'Verification email sent'})


def _verification_response(app_ctx, status_key, payload, status_code=200):
    redirect_url = app_ctx.EMAIL_VERIFIED_REDIRECT_URL
    if redirect_url:
        separator = '&' if '?' in redirect_url else '?'
        return app_ctx.redirect(f"{redirect_url}{separator}status={status_key}")
    return app_ctx.jsonify(payload), status_code


def verify_email(app_ctx, request):
    token = str(request.args.get('token', '') or '').strip()
    if not token:
        return _verification_response(app_ctx, 'invalid', {'error': 'token is required'}, 400)
    if not TOKEN_RE.match(token):
        return _verification_response(app_ctx, 'invalid', {'error': 'Invalid verification token'}, 400)
    if app_ctx.db is None:
        return app_ctx.jsonify({'error': 'Database not configured'}), 500

    try:
        doc = verification_repo.get_doc(app_ctx.db, token)
        if not doc.exists:
            return _verification_response(app_ctx, 'invalid', {'error': 'Verification token not found'}, 404)
        record = doc.to_dict() or {}
        uid = record.get('uid', '')
        if record.get('verified'):
            return _verification_response(app_ctx, 'already', {'ok': True, 'alreadyVerified': True})

        now_ts = app_ctx.time.time()
        if float(record.get('expiresAt', 0) or 0) <= now_ts:
            return _verification_response(app_ctx, 'expired', {'error': 'Verification link has expired'}, 400)

        verification_repo.update_doc(app_ctx.db, token, {'verified': True, 'verifiedAt': now_ts})
        if uid:
            users_repo.set_doc(app_ctx.db, uid, {
                'emailVerified': True,
                'emailVerifiedAt': now_ts,
                'updatedAt': now_ts,
            }, merge=True)
        app_ctx.log_event(app_ctx.logging.INFO, 'email_verified', uid=uid)
        return _verification_response(app_ctx, 'verified', {'ok': True, 'verified': True})
    except Exception as e:
        app_ctx.logger.error(f"Error verifying email token: {e}")
        return app_ctx.jsonify({'error': 'Could not verify email'}), 500


def resend_verification(app_ctx, request):
    decoded_token = app_ctx.verify_firebase_token(request)
    if not decoded_token:
        return app_ctx.jsonify({'error': 'Unauthorized'}), 401
    if app_ctx.db is None:
        return app_ctx.jsonify({'error': 'Database not configured'}), 500

    uid = decoded_token['uid']
    try:
        user_doc = users_repo.get_doc(app_ctx.db, uid)
    except Exception as e:
        app_ctx.logger.error(f"Error loading user {uid} for resend: {e}")
        return app_ctx.jsonify({'error': 'Could not resend verification email'}), 500
    if not user_doc.exists:
        return app_ctx.jsonify({'error': 'User not found'}), 404

    user_data = user_doc.to_dict() or {}
    if user_data.get('emailVerified'):
        return app_ctx.jsonify({'error': 'Email is already verified'}), 400
    email = normalize_email(user_data.get('email', '') or decoded_token.get('email', ''))
    if not email:
        return app_ctx.jsonify({'error': 'No email address on file'}), 400

    allowed, retry_after = app_ctx.check_rate_limit(
        key=f"resend_verification:{app_ctx.normalize_rate_limit_key_part(uid, fallback='anon_uid')}",
        limit=app_ctx.RESEND_VERIFICATION_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=app_ctx.RESEND_VERIFICATION_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not allowed:
        app_ctx.log_rate_limit_hit('resend_verification', retry_after)
        return app_ctx.build_rate_limited_response(
            'Too many verification emails requested. Please wait before trying again.',
            retry_after,
        )

    try:
        ok, detail = issue_verification(app_ctx, uid, email)
    except Exception as e:
        app_ctx.logger.error(f"Error re-issuing verification for {uid}: {e}")
        return app_ctx.jsonify({'error': 'Could not resend verification email'}), 500
    if not ok:
        return app_ctx.jsonify({'error': f"Could not resend verification email: {detail}"}), 500
    return app_ctx.jsonify({'ok': True, 'message': 'Verification email sent'})
