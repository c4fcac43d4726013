from .payments import payments_bp
from .verification import verification_bp
from .referral import referral_bp
from .events import events_bp
from .catalog import catalog_bp

__all__ = ['payments_bp', 'verification_bp', 'referral_bp', 'events_bp', 'catalog_bp']
