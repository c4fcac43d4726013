"""Visual themes for the game canvas and page chrome.

Stock themes ship with the backend. Players can also build custom themes on
the client; those arrive as plain dicts and are validated here before being
merged over the stock set.
"""

import copy
import re

from skyfall_backend.logging_config import get_logger

logger = get_logger('themes')

DEFAULT_THEME_ID = 'default'
THEME_ID_RE = re.compile(r'^[A-Za-z0-9_-]{1,64}$')
HEX_COLOR_RE = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$')
MAX_CUSTOM_THEMES = 50
COLOR_FIELDS = ('background', 'grass', 'grassDark', 'obstacle', 'obstacleBorder', 'coin', 'coinBorder')
PLAYER_COLOR_FIELDS = ('skin', 'outline')
UI_COLOR_FIELDS = ('bodyGradientStart', 'bodyGradientEnd')
ASSET_FIELDS = ('backgroundImage', 'obstacleSprite', 'playerSprite', 'coinSprite')


def _empty_assets():
    return {field: None for field in ASSET_FIELDS}


GAME_THEMES = {
    # Bright daytime sky
    'default': {
        'id': 'default',
        'name': 'Sky Blue',
        'colors': {
            'background': '#7dd3fc',
            'grass': '#22c55e',
            'grassDark': '#16a34a',
            'obstacle': '#374151',
            'obstacleBorder': '#1f2937',
            'coin': '#fbbf24',
            'coinBorder': '#d97706',
            'player': {'skin': '#FFD1A4', 'outline': '#000000'},
        },
        'ui': {'bodyGradientStart': '#60a5fa', 'bodyGradientEnd': '#2563eb'},
        'assets': _empty_assets(),
    },
    # Navy night sky, brick-red buildings, stadium-light coins
    'campusNight': {
        'id': 'campusNight',
        'name': 'Campus Night',
        'colors': {
            'background': '#1e3a8a',
            'grass': '#15803d',
            'grassDark': '#14532d',
            'obstacle': '#991b1b',
            'obstacleBorder': '#7f1d1d',
            'coin': '#eab308',
            'coinBorder': '#ca8a04',
            'player': {'skin': '#FFD1A4', 'outline': '#000000'},
        },
        'ui': {'bodyGradientStart': '#1e40af', 'bodyGradientEnd': '#1e3a8a'},
        'assets': _empty_assets(),
    },
    'sunset': {
        'id': 'sunset',
        'name': 'Golden Sunset',
        'colors': {
            'background': '#fb923c',
            'grass': '#84cc16',
            'grassDark': '#65a30d',
            'obstacle': '#7c2d12',
            'obstacleBorder': '#431407',
            'coin': '#fde047',
            'coinBorder': '#facc15',
            'player': {'skin': '#FFD1A4', 'outline': '#000000'},
        },
        'ui': {'bodyGradientStart': '#fb923c', 'bodyGradientEnd': '#f97316'},
        'assets': _empty_assets(),
    },
    # Blue and gold against a red rival
    'rivalry': {
        'id': 'rivalry',
        'name': 'Rivalry Colors',
        'colors': {
            'background': '#3b82f6',
            'grass': '#fbbf24',
            'grassDark': '#f59e0b',
            'obstacle': '#dc2626',
            'obstacleBorder': '#991b1b',
            'coin': '#ffffff',
            'coinBorder': '#e5e7eb',
            'player': {'skin': '#FFD1A4', 'outline': '#000000'},
        },
        'ui': {'bodyGradientStart': '#3b82f6', 'bodyGradientEnd': '#2563eb'},
        'assets': _empty_assets(),
    },
}


def get_theme(theme_id):
    return GAME_THEMES.get(theme_id) or GAME_THEMES[DEFAULT_THEME_ID]


def get_available_theme_ids():
    return list(GAME_THEMES.keys())


def get_all_themes():
    return list(GAME_THEMES.values())


def is_hex_color(value):
    return isinstance(value, str) and bool(HEX_COLOR_RE.match(value.strip()))


def _merge_colors(base, raw, fields):
    merged = dict(base)
    if not isinstance(raw, dict):
        return merged
    for field in fields:
        value = raw.get(field)
        if is_hex_color(value):
            merged[field] = value.strip()
    return merged


def sanitize_custom_theme(raw):
    """Return a complete theme built from client data, or None when unusable.

    Missing or malformed colors fall back to the default theme's values. Asset
    paths are never taken from the client.
    """
    if not isinstance(raw, dict):
        return None
    theme_id = str(raw.get('id', '') or '').strip()
    if not THEME_ID_RE.match(theme_id):
        return None
    raw_colors = raw.get('colors')
    if not isinstance(raw_colors, dict):
        return None

    base = GAME_THEMES[DEFAULT_THEME_ID]
    colors = _merge_colors(base['colors'], raw_colors, COLOR_FIELDS)
    colors['player'] = _merge_colors(base['colors']['player'], raw_colors.get('player'), PLAYER_COLOR_FIELDS)
    name = str(raw.get('name', '') or '').strip()[:60] or theme_id
    return {
        'id': theme_id,
        'name': name,
        'colors': colors,
        'ui': _merge_colors(base['ui'], raw.get('ui'), UI_COLOR_FIELDS),
        'assets': _empty_assets(),
        'custom': True,
    }


def get_all_themes_with_custom(custom_themes=None):
    """Stock themes with valid custom themes layered on top (same id replaces)."""
    all_themes = copy.deepcopy(GAME_THEMES)
    if not custom_themes:
        return all_themes
    if not isinstance(custom_themes, list):
        logger.warning("Ignoring custom themes payload that is not a list")
        return all_themes

    loaded = 0
    for raw in custom_themes[:MAX_CUSTOM_THEMES]:
        theme = sanitize_custom_theme(raw)
        if theme is None:
            logger.info("Skipping invalid custom theme entry")
            continue
        all_themes[theme['id']] = theme
        loaded += 1
    logger.debug(f"Loaded {loaded} custom themes")
    return all_themes


def get_theme_with_custom(theme_id, custom_themes=None):
    all_themes = get_all_themes_with_custom(custom_themes)
    return all_themes.get(theme_id) or all_themes.get(DEFAULT_THEME_ID) or GAME_THEMES[DEFAULT_THEME_ID]
