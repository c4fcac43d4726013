import os

from .config import load_config
from .extensions import init_extensions
from .logging_config import configure_logging


def create_app():
    """App factory entrypoint.

    Routes and shared state live in ``skyfall_backend.runtime``; the factory
    loads config, sets up logging and attaches Sentry to that app.
    """
    config = load_config()
    configure_logging(config.log_level)

    from .runtime import app

    init_extensions(app, config, traces_sample_rate=os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.0'))
    return app
