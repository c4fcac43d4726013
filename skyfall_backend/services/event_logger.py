"""Gameplay event logging to the Firestore ``events`` collection."""

import re
from datetime import datetime, timezone

from skyfall_backend.repositories import events_repo, users_repo

EVENT_NAME_RE = re.compile(r'^[a-z0-9_]{2,64}$')
METADATA_KEY_RE = re.compile(r'^[a-z0-9_]{1,64}$')
ALLOWED_EVENT_TYPES = {
    'game_started',
    'game_over',
    'score_submitted',
    'joined_rivalries',
    'theme_selected',
    'school_selected',
    'checkout_started',
    'signup_completed',
    'email_verified',
    'referral_shared',
}
CORE_FIELDS = {'eventType', 'timestamp', 'userId', 'email', 'school', 'frat', 'score', 'level', 'coins'}
MAX_METADATA_KEYS = 20


def sanitize_event_type(raw_name):
    name = str(raw_name or '').strip().lower()
    if not EVENT_NAME_RE.match(name):
        return ''
    return name if name in ALLOWED_EVENT_TYPES else ''


def sanitize_metadata(raw_metadata):
    if not isinstance(raw_metadata, dict):
        return {}
    cleaned = {}
    for raw_key, raw_value in list(raw_metadata.items())[:MAX_METADATA_KEYS]:
        key = str(raw_key or '').strip().lower().replace('-', '_').replace(' ', '_')
        if not key or not METADATA_KEY_RE.match(key):
            continue
        if isinstance(raw_value, bool):
            cleaned[key] = raw_value
        elif isinstance(raw_value, (int, float)):
            cleaned[key] = round(float(raw_value), 4)
        elif isinstance(raw_value, str):
            cleaned[key] = raw_value.strip()[:200]
    return cleaned


def sanitize_stat(value, max_value=10_000_000):
    """Non-negative int game stat, or None when absent or unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return None
    if number < 0:
        return None
    return min(number, max_value)


def build_event_doc(event_type, user_id=None, email=None, school=None, frat=None,
                    score=None, level=None, coins=None, metadata=None, *, server_timestamp):
    doc = {
        'eventType': event_type,
        'timestamp': server_timestamp,
        'userId': user_id or 'anonymous',
        'email': email or None,
        'school': school or None,
        'frat': frat or None,
    }
    if score is not None:
        doc['score'] = score
    if level is not None:
        doc['level'] = level
    if coins is not None:
        doc['coins'] = coins
    for key, value in (metadata or {}).items():
        if key not in CORE_FIELDS:
            doc[key] = value
    return doc


def log_event(
    event_type,
    user_id=None,
    email=None,
    school=None,
    frat=None,
    score=None,
    level=None,
    coins=None,
    metadata=None,
    *,
    db,
    firestore_module,
    logger,
):
    """Write one event. Returns the new document id, or None when it could not be stored."""
    if db is None:
        logger.error("❌ Event logger not initialized: Firestore is not configured")
        return None
    event_doc = build_event_doc(
        event_type,
        user_id=user_id,
        email=email,
        school=school,
        frat=frat,
        score=score,
        level=level,
        coins=coins,
        metadata=metadata,
        server_timestamp=firestore_module.SERVER_TIMESTAMP,
    )
    try:
        doc_id = events_repo.add_event(db, event_doc)
    except Exception as exc:
        logger.error(f"❌ Error logging event {event_type} for {user_id or 'anonymous'}: {exc}")
        return None
    logger.info(f"📊 Event logged: {event_type} id={doc_id} user={user_id or 'anonymous'}")
    return doc_id


def get_user_context(uid, email=None, *, db, logger):
    """Return ``{userId, email, school, frat}`` for a user, tolerating missing docs."""
    if not uid:
        return {'userId': None, 'email': None, 'school': None, 'frat': None}
    context = {'userId': uid, 'email': email or None, 'school': None, 'frat': None}
    if db is None:
        return context
    try:
        doc = users_repo.get_doc(db, uid)
    except Exception as exc:
        logger.error(f"❌ Error getting user context for {uid}: {exc}")
        return context
    if doc.exists:
        user_data = doc.to_dict() or {}
        context['email'] = email or user_data.get('email') or None
        context['school'] = user_data.get('school') or None
        context['frat'] = user_data.get('frat') or None
    return context


def client_timestamp():
    return datetime.now(timezone.utc).isoformat()


def log_game_started(user_context, level=1, **deps):
    return log_event(
        'game_started',
        user_id=user_context.get('userId'),
        email=user_context.get('email'),
        school=user_context.get('school'),
        frat=user_context.get('frat'),
        level=level,
        metadata={'timestamp_client': client_timestamp()},
        **deps,
    )


def log_score_submitted(user_context, score, level, coins, **deps):
    return log_event(
        'score_submitted',
        user_id=user_context.get('userId'),
        email=user_context.get('email'),
        school=user_context.get('school'),
        frat=user_context.get('frat'),
        score=score,
        level=level,
        coins=coins,
        metadata={'timestamp_client': client_timestamp()},
        **deps,
    )


def log_joined_rivalries(user_context, **deps):
    return log_event(
        'joined_rivalries',
        user_id=user_context.get('userId'),
        email=user_context.get('email'),
        school=user_context.get('school'),
        frat=user_context.get('frat'),
        metadata={'timestamp_client': client_timestamp()},
        **deps,
    )
