import os
from dataclasses import dataclass

DEV_ENV_NAMES = {'development', 'dev', 'local', 'test'}
TRUTHY_VALUES = {'1', 'true', 'yes', 'on'}


def env_flag(name, default='0'):
    return str(os.getenv(name, default)).strip().lower() in TRUTHY_VALUES


def safe_int_env(name, default=0, minimum=1, maximum=100000):
    raw = os.getenv(name, str(default)).strip()
    try:
        value = int(raw)
    except Exception:
        value = int(default)
    return min(max(value, minimum), maximum)


def parse_csv_env(name, default=()):
    raw = (os.getenv(name, '') or '').strip()
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(',') if part.strip()]


def parse_price_bonus_map(raw):
    """Parse ``price_abc:10,price_def:25`` into ``{'price_abc': 10, ...}``.

    Malformed pairs and non-positive amounts are skipped.
    """
    mapping = {}
    for part in str(raw or '').split(','):
        if ':' not in part:
            continue
        price_id, _, amount_raw = part.partition(':')
        price_id = price_id.strip()
        try:
            amount = int(amount_raw.strip())
        except ValueError:
            continue
        if price_id and amount > 0:
            mapping[price_id] = amount
    return mapping


def resolve_runtime_env():
    return (
        os.getenv('SENTRY_ENVIRONMENT')
        or os.getenv('FLASK_ENV')
        or os.getenv('ENV')
        or ('production' if os.getenv('RENDER') else 'development')
    ).strip().lower()


@dataclass(frozen=True)
class AppConfig:
    """Central config object read from the process environment."""

    flask_secret_key: str = ''
    log_level: str = 'INFO'
    runtime_env: str = 'development'
    sentry_dsn: str = ''
    sentry_environment: str = 'production'
    sentry_release: str = 'skyfall-backend'
    public_base_url: str = 'https://topseat.us'
    checkout_success_url: str = 'https://topseat.us/success.html'
    checkout_cancel_url: str = 'https://topseat.us/cancel.html'
    brevo_api_key: str = ''
    brevo_sender_email: str = ''
    brevo_sender_name: str = 'Sky Fall'
    email_verified_redirect_url: str = ''

    @property
    def is_dev_like(self):
        return self.runtime_env in DEV_ENV_NAMES


def load_config() -> AppConfig:
    public_base_url = (os.getenv('PUBLIC_BASE_URL', 'https://topseat.us') or 'https://topseat.us').strip().rstrip('/')
    config = AppConfig(
        flask_secret_key=os.getenv('FLASK_SECRET_KEY', ''),
        log_level=(os.getenv('LOG_LEVEL', 'INFO') or 'INFO').strip().upper(),
        runtime_env=resolve_runtime_env(),
        sentry_dsn=(os.getenv('SENTRY_DSN_BACKEND', '') or '').strip(),
        sentry_environment=(os.getenv('SENTRY_ENVIRONMENT', os.getenv('FLASK_ENV', 'production')) or 'production').strip(),
        sentry_release=(os.getenv('SENTRY_RELEASE', 'skyfall-backend') or 'skyfall-backend').strip(),
        public_base_url=public_base_url,
        checkout_success_url=(os.getenv('CHECKOUT_SUCCESS_URL', '') or f"{public_base_url}/success.html").strip(),
        checkout_cancel_url=(os.getenv('CHECKOUT_CANCEL_URL', '') or f"{public_base_url}/cancel.html").strip(),
        brevo_api_key=(os.getenv('BREVO_API_KEY', '') or '').strip(),
        brevo_sender_email=(os.getenv('BREVO_SENDER_EMAIL', '') or '').strip(),
        brevo_sender_name=(os.getenv('BREVO_SENDER_NAME', 'Sky Fall') or 'Sky Fall').strip(),
        email_verified_redirect_url=(os.getenv('EMAIL_VERIFIED_REDIRECT_URL', '') or '').strip(),
    )
    if not config.is_dev_like and not config.flask_secret_key.strip():
        raise RuntimeError('FLASK_SECRET_KEY must be set in non-development environments.')
    return config
