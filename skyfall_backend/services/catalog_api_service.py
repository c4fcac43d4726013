"""Read-only handlers for the schools directory and theme tables."""

from skyfall_backend.data import schools, themes

MAX_SCHOOL_RESULTS = 50


def parse_limit(raw_value, default=schools.DEFAULT_MAX_RESULTS, maximum=MAX_SCHOOL_RESULTS):
    try:
        value = int(str(raw_value).strip())
    except (TypeError, ValueError):
        return default
    return min(max(value, 1), maximum)


def search_schools(app_ctx, request):
    query = str(request.args.get('q', '') or '').strip()[:100]
    limit = parse_limit(request.args.get('limit', schools.DEFAULT_MAX_RESULTS))
    results = schools.search_schools(query, max_results=limit)
    return app_ctx.jsonify({
        'query': query,
        'results': results,
        'count': len(results),
        'total': schools.SCHOOLS_COUNT,
    })


def get_school(app_ctx, school_id):
    school = schools.get_school_by_id(school_id)
    if school is None:
        return app_ctx.jsonify({'error': 'School not found'}), 404
    return app_ctx.jsonify({'school': school})


def list_themes(app_ctx, request):
    return app_ctx.jsonify({
        'defaultThemeId': themes.DEFAULT_THEME_ID,
        'themeIds': themes.get_available_theme_ids(),
        'themes': themes.get_all_themes(),
    })


def get_theme(app_ctx, theme_id):
    # Unknown ids fall back to the default theme; the client compares ids to notice.
    return app_ctx.jsonify({'theme': themes.get_theme(theme_id)})


def resolve_theme(app_ctx, request):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    custom_themes = data.get('customThemes') or []
    if not isinstance(custom_themes, list):
        return app_ctx.jsonify({'error': 'customThemes must be a list'}), 400
    theme_id = str(data.get('themeId', '') or '').strip()
    all_themes = themes.get_all_themes_with_custom(custom_themes)
    return app_ctx.jsonify({
        'theme': themes.get_theme_with_custom(theme_id, custom_themes),
        'themeIds': list(all_themes.keys()),
    })
