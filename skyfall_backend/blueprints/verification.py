from flask import Blueprint

verification_bp = Blueprint('verification_api', __name__)


@verification_bp.route('/api/send-verification-email', methods=['POST'])
def send_verification_email():
    from skyfall_backend import runtime

    return runtime.send_verification_email_impl()


@verification_bp.route('/api/verify-email', methods=['GET'])
def verify_email():
    from skyfall_backend import runtime

    return runtime.verify_email_impl()


@verification_bp.route('/api/resend-verification', methods=['POST'])
def resend_verification():
    from skyfall_backend import runtime

    return runtime.resend_verification_impl()
