from flask import Blueprint

payments_bp = Blueprint('payments_api', __name__)


@payments_bp.route('/create-checkout-session', methods=['POST'])
def create_checkout_session():
    from skyfall_backend import runtime

    return runtime.create_checkout_session_impl()


@payments_bp.route('/webhook', methods=['POST'])
def stripe_webhook():
    from skyfall_backend import runtime

    return runtime.stripe_webhook_impl()
