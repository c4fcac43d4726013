"""Business logic handlers for checkout and Stripe webhook APIs."""

CHECKOUT_MODES = {'payment', 'subscription'}
SUBSCRIPTION_EVENT_TYPES = {
    'customer.subscription.created',
    'customer.subscription.updated',
    'customer.subscription.deleted',
    'invoice.payment_failed',
}


def stripe_object_id(value):
    """Stripe sends ids as strings unless the field was expanded into an object."""
    if not value:
        return ''
    if isinstance(value, str):
        return value
    try:
        return str(value.get('id', '') or '')
    except AttributeError:
        return str(getattr(value, 'id', '') or '')


def create_checkout_session(app_ctx, request):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    price_id = str(data.get('priceId', '') or '').strip()
    mode = str(data.get('mode', '') or 'payment').strip().lower()
    app_ctx.logger.info(f"Received checkout request: priceId={price_id!r} mode={mode!r}")

    if not price_id:
        return app_ctx.jsonify({'error': 'priceId is required'}), 400
    if mode not in CHECKOUT_MODES:
        return app_ctx.jsonify({'error': "mode must be 'payment' or 'subscription'"}), 400

    client_ip = app_ctx.get_client_ip(request)
    allowed_checkout, retry_after = app_ctx.check_rate_limit(
        key=f"checkout:{app_ctx.normalize_rate_limit_key_part(client_ip, fallback='anon_ip')}",
        limit=app_ctx.CHECKOUT_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=app_ctx.CHECKOUT_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not allowed_checkout:
        app_ctx.log_rate_limit_hit('checkout', retry_after)
        return app_ctx.build_rate_limited_response(
            'Too many checkout attempts. Please wait before starting another checkout.',
            retry_after,
        )

    decoded_token = app_ctx.verify_firebase_token(request)
    uid = app_ctx.resolve_uid(decoded_token, data.get('userId', ''))
    bonus_attempts = int(app_ctx.PRICE_BONUS_ATTEMPTS.get(price_id, 0))
    metadata = {
        'userId': uid,
        'priceId': price_id,
        'bonusAttempts': str(bonus_attempts),
    }
    params = {
        'mode': mode,
        'line_items': [{'price': price_id, 'quantity': 1}],
        'success_url': app_ctx.CHECKOUT_SUCCESS_URL,
        'cancel_url': app_ctx.CHECKOUT_CANCEL_URL,
        'metadata': metadata,
    }
    if uid:
        params['client_reference_id'] = uid
    email = (decoded_token or {}).get('email', '')
    if email:
        params['customer_email'] = email
    if mode == 'subscription':
        params['subscription_data'] = {'metadata': metadata}

    try:
        session = app_ctx.stripe.checkout.Session.create(**params)
    except app_ctx.stripe.StripeError as e:
        app_ctx.logger.error(f"Stripe checkout error: {e}")
        return app_ctx.jsonify({
            'error': getattr(e, 'user_message', None) or str(e) or 'Stripe error',
            'type': type(e).__name__,
            'code': getattr(e, 'code', None),
        }), 500
    except Exception as e:
        app_ctx.logger.error(f"Checkout session error: {e}")
        return app_ctx.jsonify({'error': 'Could not create checkout session. Please try again.'}), 500

    app_ctx.log_event(
        app_ctx.logging.INFO,
        'checkout_session_created',
        session_id=session.id,
        mode=mode,
        price_id=price_id,
        uid=uid,
    )
    return app_ctx.jsonify({'id': session.id, 'url': session.url})


def process_checkout_session(app_ctx, session):
    """Apply a completed checkout session. Returns ``(ok, status)``."""
    metadata = session.get('metadata', {}) or {}
    uid = str(metadata.get('userId', '') or session.get('client_reference_id', '') or '').strip()
    session_id = session.get('id', '')
    mode = str(session.get('mode', '') or 'payment').lower()
    payment_status = str(session.get('payment_status', '') or '').lower()
    session_status = str(session.get('status', '') or '').lower()

    if not uid:
        return False, 'Missing checkout user.'

    if mode == 'subscription':
        app_ctx.set_subscription_status(
            uid,
            'active',
            customer_id=stripe_object_id(session.get('customer')),
            subscription_id=stripe_object_id(session.get('subscription')),
        )
        return True, 'subscription_activated'

    if payment_status != 'paid' and session_status != 'complete':
        return False, 'Checkout session is not paid yet.'
    if not session_id:
        return False, 'Missing checkout session id.'
    if app_ctx.purchase_record_exists_for_session(session_id):
        return True, 'already_processed'

    bonus_attempts = app_ctx.resolve_bonus_attempts(metadata)
    if bonus_attempts <= 0:
        return False, 'Unknown bonus amount for price.'

    if not app_ctx.grant_purchase_attempts(uid, session, bonus_attempts):
        return True, 'already_processed'
    return True, 'granted'


def process_subscription_event(app_ctx, event_type, obj):
    """Map subscription lifecycle and invoice events onto ``subscriptionStatus``."""
    metadata = obj.get('metadata', {}) or {}
    customer_id = stripe_object_id(obj.get('customer'))
    if event_type == 'invoice.payment_failed':
        status = 'past_due'
        subscription_id = stripe_object_id(obj.get('subscription'))
    elif event_type == 'customer.subscription.deleted':
        status = 'canceled'
        subscription_id = stripe_object_id(obj.get('id'))
    else:
        status = str(obj.get('status', '') or 'active').lower()
        subscription_id = stripe_object_id(obj.get('id'))

    uid = str(metadata.get('userId', '') or '').strip()
    if not uid:
        uid = app_ctx.find_uid_by_stripe_customer(customer_id)
    if not uid:
        return False, 'Could not resolve user for subscription event.'

    app_ctx.set_subscription_status(uid, status, customer_id=customer_id, subscription_id=subscription_id)
    return True, f"subscription_{status}"


def stripe_webhook(app_ctx, request):
    payload = request.data
    sig_header = request.headers.get('Stripe-Signature', '')

    if not app_ctx.STRIPE_WEBHOOK_SECRET:
        # Without signature verification anyone could forge payment events.
        app_ctx.logger.warning("⚠️ Stripe webhook rejected: STRIPE_WEBHOOK_SECRET is not configured")
        return app_ctx.jsonify({'error': 'Webhook not configured'}), 500

    try:
        event = app_ctx.stripe.Webhook.construct_event(payload, sig_header, app_ctx.STRIPE_WEBHOOK_SECRET)
    except ValueError:
        app_ctx.logger.warning("Stripe webhook: Invalid payload")
        return app_ctx.jsonify({'error': 'Invalid payload'}), 400
    except app_ctx.stripe.SignatureVerificationError as e:
        app_ctx.logger.warning(f"Stripe webhook signature verification failed: {e}")
        return app_ctx.jsonify({'error': 'Invalid signature'}), 400
    except Exception as e:
        app_ctx.logger.error(f"Stripe webhook unexpected error: {e}")
        return app_ctx.jsonify({'error': 'Webhook processing error'}), 500

    event_type = event.get('type', '')
    obj = (event.get('data', {}) or {}).get('object', {}) or {}

    if app_ctx.db is None:
        app_ctx.logger.error(f"Stripe webhook {event_type} received but Firestore is not configured")
        return app_ctx.jsonify({'error': 'Database not configured'}), 500

    try:
        if event_type == 'checkout.session.completed':
            ok, status = process_checkout_session(app_ctx, obj)
        elif event_type in SUBSCRIPTION_EVENT_TYPES:
            ok, status = process_subscription_event(app_ctx, event_type, obj)
        else:
            ok, status = True, 'ignored'
    except Exception as e:
        app_ctx.logger.error(f"Stripe webhook {event_type} failed: {e}")
        return app_ctx.jsonify({'error': 'Webhook processing error'}), 500

    if ok:
        app_ctx.log_event(app_ctx.logging.INFO, 'stripe_webhook_applied', type=event_type, status=status, object_id=obj.get('id', ''))
    else:
        app_ctx.logger.warning(f"⚠️ Webhook {event_type} ({obj.get('id', '')}) not applied: {status}")
    return app_ctx.jsonify({'received': True, 'status': status})
