from flask import Blueprint

catalog_bp = Blueprint('catalog_api', __name__)


@catalog_bp.route('/api/schools', methods=['GET'])
def search_schools():
    from skyfall_backend import runtime

    return runtime.search_schools_impl()


@catalog_bp.route('/api/schools/<school_id>', methods=['GET'])
def get_school(school_id):
    from skyfall_backend import runtime

    return runtime.get_school_impl(school_id)


@catalog_bp.route('/api/themes', methods=['GET'])
def list_themes():
    from skyfall_backend import runtime

    return runtime.list_themes_impl()


@catalog_bp.route('/api/themes/<theme_id>', methods=['GET'])
def get_theme(theme_id):
    from skyfall_backend import runtime

    return runtime.get_theme_impl(theme_id)


@catalog_bp.route('/api/themes/resolve', methods=['POST'])
def resolve_theme():
    from skyfall_backend import runtime

    return runtime.resolve_theme_impl()
