"""Firebase ID token helpers."""


def extract_bearer_token(request):
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return ''
    return auth_header.split('Bearer ', 1)[1].strip()


def verify_firebase_token(request, auth_module, logger):
    """Return decoded Firebase token dict, or None when invalid/missing."""
    token = extract_bearer_token(request)
    if not token:
        return None
    try:
        return auth_module.verify_id_token(token)
    except Exception as exc:
        if logger is not None:
            logger.info(f"Token verification failed: {exc}")
        return None


def resolve_uid(decoded_token, fallback=''):
    """Prefer the verified uid; fall back to a client-supplied id only when unauthenticated."""
    if decoded_token and decoded_token.get('uid'):
        return str(decoded_token['uid'])
    return str(fallback or '').strip()[:128]
