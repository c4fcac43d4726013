"""HTTP handler for gameplay event ingestion."""

from skyfall_backend.services import event_logger


def ingest_game_event(app_ctx, request):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    decoded_token = app_ctx.verify_firebase_token(request)
    uid = decoded_token.get('uid', '') if decoded_token else ''
    email = decoded_token.get('email', '') if decoded_token else ''

    actor_token = uid or app_ctx.get_client_ip(request)
    actor_key = app_ctx.normalize_rate_limit_key_part(actor_token, fallback='anon')
    allowed_events, retry_after = app_ctx.check_rate_limit(
        key=f"events:{actor_key}",
        limit=app_ctx.EVENTS_RATE_LIMIT_MAX_REQUESTS,
        window_seconds=app_ctx.EVENTS_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not allowed_events:
        app_ctx.log_rate_limit_hit('events', retry_after)
        return app_ctx.build_rate_limited_response(
            'Too many events from this client. Please retry shortly.',
            retry_after,
        )

    event_type = event_logger.sanitize_event_type(data.get('eventType', ''))
    if not event_type:
        return app_ctx.jsonify({'error': 'Invalid eventType'}), 400

    context = app_ctx.get_user_context(uid, email)
    school = str(data.get('school', '') or '').strip()[:120] or context.get('school')
    frat = str(data.get('frat', '') or '').strip()[:120] or context.get('frat')

    event_id = app_ctx.log_game_event(
        event_type,
        user_id=context.get('userId'),
        email=context.get('email'),
        school=school,
        frat=frat,
        score=event_logger.sanitize_stat(data.get('score')),
        level=event_logger.sanitize_stat(data.get('level'), max_value=10_000),
        coins=event_logger.sanitize_stat(data.get('coins')),
        metadata=event_logger.sanitize_metadata(data.get('metadata', {})),
    )
    if not event_id:
        return app_ctx.jsonify({'error': 'Could not store event'}), 500
    return app_ctx.jsonify({'ok': True, 'id': event_id})
