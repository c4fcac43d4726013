"""Signup throttling and referral reward handlers."""

from skyfall_backend.repositories import users_repo
from skyfall_backend.services.rate_limit_service import DAY_SECONDS, HOUR_SECONDS, count_in_window


def signup_windows(app_ctx):
    return [
        (HOUR_SECONDS, app_ctx.SIGNUP_MAX_PER_HOUR),
        (DAY_SECONDS, app_ctx.SIGNUP_MAX_PER_DAY),
    ]


def referral_windows(app_ctx):
    return [
        (HOUR_SECONDS, app_ctx.REFERRAL_MAX_PER_HOUR),
        (DAY_SECONDS, app_ctx.REFERRAL_MAX_PER_DAY),
    ]


def record_signup_ip(app_ctx, uid, ip_key):
    """Store the first signup network seen for ``uid``. Returns False when one is already on file."""
    user_doc = users_repo.get_doc(app_ctx.db, uid)
    if user_doc.exists and (user_doc.to_dict() or {}).get('signupIp'):
        return False
    users_repo.set_doc(app_ctx.db, uid, {'signupIp': ip_key, 'updatedAt': app_ctx.time.time()}, merge=True)
    return True


def track_signup(app_ctx, request):
    if app_ctx.db is None:
        return app_ctx.jsonify({'error': 'Database not configured'}), 500

    client_ip = app_ctx.get_client_ip(request)
    ip_key = app_ctx.normalize_rate_limit_key_part(client_ip, fallback='unknown')
    # Only the signed-in account may have its signup network recorded.
    decoded_token = app_ctx.verify_firebase_token(request)
    uid = decoded_token.get('uid', '') if decoded_token else ''

    try:
        allowed, retry_after, timestamps = app_ctx.check_timestamp_throttle(
            ip_key,
            signup_windows(app_ctx),
            collection_name=app_ctx.rate_limit_repo.SIGNUP_THROTTLE_COLLECTION,
        )
    except Exception as e:
        app_ctx.logger.error(f"Signup throttle check failed for {ip_key}: {e}")
        return app_ctx.jsonify({'error': 'Could not record signup'}), 500

    if not allowed:
        app_ctx.log_rate_limit_hit('signup', retry_after)
        app_ctx.log_event(app_ctx.logging.WARNING, 'signup_throttled', ip_key=ip_key, retry_after=retry_after)
        return app_ctx.build_rate_limited_response(
            'Too many accounts created from this network. Please try again later.',
            retry_after,
        )

    ip_recorded = False
    if uid:
        try:
            ip_recorded = record_signup_ip(app_ctx, uid, ip_key)
        except Exception as e:
            app_ctx.logger.error(f"Could not store signup ip for {uid}: {e}")
            return app_ctx.jsonify({'error': 'Could not record signup'}), 500

    used_today = count_in_window(timestamps, app_ctx.time.time(), DAY_SECONDS)
    return app_ctx.jsonify({
        'ok': True,
        'remainingToday': max(0, app_ctx.SIGNUP_MAX_PER_DAY - used_today),
        'ipRecorded': ip_recorded,
    })


def process_referral_reward(app_ctx, request):
    decoded_token = app_ctx.verify_firebase_token(request)
    if not decoded_token:
        return app_ctx.jsonify({'error': 'Unauthorized'}), 401

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    uid = decoded_token['uid']
    referred_uid = str(data.get('referredUid', '') or '').strip() or uid
    if referred_uid != uid:
        return app_ctx.jsonify({'error': 'Forbidden'}), 403
    if app_ctx.db is None:
        return app_ctx.jsonify({'error': 'Database not configured'}), 500

    try:
        referred_doc = users_repo.get_doc(app_ctx.db, uid)
        if not referred_doc.exists:
            return app_ctx.jsonify({'error': 'User not found'}), 404
        referred = referred_doc.to_dict() or {}
        if referred.get('referralRewarded'):
            return app_ctx.jsonify({'ok': True, 'alreadyRewarded': True})
        if not referred.get('emailVerified'):
            return app_ctx.jsonify({'error': 'Email must be verified before referral rewards are granted'}), 400

        referrer_uid = str(referred.get('referredBy', '') or '').strip()
        if not referrer_uid:
            return app_ctx.jsonify({'error': 'No referrer recorded for this user'}), 400
        if referrer_uid == uid:
            return app_ctx.jsonify({'error': 'Self-referral is not allowed'}), 400

        referrer_doc = users_repo.get_doc(app_ctx.db, referrer_uid)
        if not referrer_doc.exists:
            return app_ctx.jsonify({'error': 'Referrer not found'}), 404
        referrer = referrer_doc.to_dict() or {}

        referred_ip = str(referred.get('signupIp', '') or '')
        if referred_ip and referred_ip == str(referrer.get('signupIp', '') or ''):
            app_ctx.log_event(app_ctx.logging.WARNING, 'referral_rejected_same_ip', uid=uid, referrer_uid=referrer_uid)
            return app_ctx.jsonify({'error': 'Referral rejected: accounts share a signup network'}), 400

        allowed, retry_after, _timestamps = app_ctx.check_timestamp_throttle(
            referrer_uid,
            referral_windows(app_ctx),
            collection_name=app_ctx.rate_limit_repo.REFERRAL_THROTTLE_COLLECTION,
            record=False,
        )
        if not allowed:
            app_ctx.log_rate_limit_hit('referral', retry_after)
            return app_ctx.build_rate_limited_response(
                'This referrer has reached the referral reward limit. Please try again later.',
                retry_after,
            )

        now_ts = app_ctx.time.time()
        bonus = app_ctx.REFERRAL_BONUS_ATTEMPTS
        # Mark first so a retried request cannot grant twice once this write lands.
        users_repo.update_doc(app_ctx.db, uid, {
            'referralRewarded': True,
            'referralRewardedAt': now_ts,
            'updatedAt': now_ts,
        })
        app_ctx.grant_bonus_attempts(referrer_uid, bonus, extra_updates={
            'referralCount': app_ctx.firestore.Increment(1),
        })
        app_ctx.record_throttle_timestamp(
            referrer_uid,
            referral_windows(app_ctx),
            collection_name=app_ctx.rate_limit_repo.REFERRAL_THROTTLE_COLLECTION,
        )
    except Exception as e:
        app_ctx.logger.error(f"Error processing referral reward for {uid}: {e}")
        return app_ctx.jsonify({'error': 'Could not process referral reward'}), 500

    app_ctx.log_event(app_ctx.logging.INFO, 'referral_rewarded', uid=uid, referrer_uid=referrer_uid, bonus_attempts=bonus)
    return app_ctx.jsonify({
        'ok': True,
        'rewarded': True,
        'referrerUid': referrer_uid,
        'bonusAttempts': bonus,
    })
