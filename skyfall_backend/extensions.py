try:
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
except ImportError:
    sentry_sdk = None
    FlaskIntegration = None


def safe_sample_rate(raw, default=0.0):
    try:
        value = float(str(raw).strip())
    except Exception:
        return default
    return min(max(value, 0.0), 1.0)


def init_sentry(config, traces_sample_rate=0.0):
    """Start Sentry when a backend DSN is configured. Returns True when enabled."""
    if config is None or not config.sentry_dsn:
        return False
    if not sentry_sdk or not FlaskIntegration:
        return False
    sentry_sdk.init(
        dsn=config.sentry_dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=safe_sample_rate(traces_sample_rate),
        send_default_pii=False,
        environment=config.sentry_environment,
        release=config.sentry_release,
    )
    return True


def init_extensions(app, config=None, traces_sample_rate=0.0) -> None:
    """Attach runtime services to the Flask app built by the factory."""
    if app is None:
        return
    if not hasattr(app, 'extensions'):
        return
    state = app.extensions.setdefault('skyfall_backend', {})
    if state.get('factory_initialized'):
        return
    state['sentry_enabled'] = init_sentry(config, traces_sample_rate=traces_sample_rate)
    state['factory_initialized'] = True
