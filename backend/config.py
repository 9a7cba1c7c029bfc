import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Socket.IO
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Round timers (seconds)
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '600'))
    # Grace period between show_countdown and round1 actually starting
    COUNTDOWN_DELAY_SEC = float(os.environ.get('COUNTDOWN_DELAY_SEC', '4'))
    # Rooms
    ROOM_CODE_ATTEMPTS = int(os.environ.get('ROOM_CODE_ATTEMPTS', '50'))
    DEFAULT_GROUP_NAME = os.environ.get('DEFAULT_GROUP_NAME', 'Bukber Championship')
    # Venue lookup (OpenStreetMap)
    VENUE_LOOKUP_ENABLED = _env_bool('VENUE_LOOKUP_ENABLED', True)
    NOMINATIM_URL = os.environ.get('NOMINATIM_URL', 'https://nominatim.openstreetmap.org/search')
    OVERPASS_URL = os.environ.get('OVERPASS_URL', 'https://overpass-api.de/api/interpreter')
    VENUE_LOOKUP_RADIUS_M = int(os.environ.get('VENUE_LOOKUP_RADIUS_M', '10000'))
    VENUE_LOOKUP_LIMIT = int(os.environ.get('VENUE_LOOKUP_LIMIT', '10'))
    VENUE_LOOKUP_TIMEOUT_SEC = int(os.environ.get('VENUE_LOOKUP_TIMEOUT_SEC', '15'))
    VENUE_USER_AGENT = os.environ.get('VENUE_USER_AGENT', 'BukberChampionshipServer/1.0')
