import json
import logging

LOGGER_NAME = 'skyfall_backend'


def configure_logging(level: str = 'INFO') -> None:
    """Idempotent logging setup shared by the app module and the factory."""
    root = logging.getLogger()
    if root.handlers:
        return
    numeric_level = getattr(logging, str(level or 'INFO').upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
    )


def get_logger(name: str = '') -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def log_structured(logger, level, event, **fields):
    """Emit one JSON object per line so business events stay greppable."""
    payload = {'event': event}
    for key, value in fields.items():
        payload[str(key)] = value
    logger.log(level, json.dumps(payload, ensure_ascii=True, default=str))
