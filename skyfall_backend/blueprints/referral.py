from flask import Blueprint

referral_bp = Blueprint('referral_api', __name__)


@referral_bp.route('/api/track-signup', methods=['POST'])
def track_signup():
    from skyfall_backend import runtime

    return runtime.track_signup_impl()


@referral_bp.route('/api/process-referral-reward', methods=['POST'])
def process_referral_reward():
    from skyfall_backend import runtime

    return runtime.process_referral_reward_impl()
