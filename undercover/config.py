import os

DEFAULT_WORDS = ["ocean", "piano", "galaxy", "pumpkin", "satellite", "museum", "bicycle"]


def _csv(value: str):
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # Room rules
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '8'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '3'))
    WORDS = _csv(os.environ.get('WORDS', '')) or list(DEFAULT_WORDS)
    # Room used when the connection does not name one
    DEFAULT_ROOM = os.environ.get('DEFAULT_ROOM') or 'default'

    ALLOWED_ORIGINS = _csv(os.environ.get('ALLOWED_ORIGINS', '*'))
    SERVER_HOST = os.environ.get('SERVER_HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '8787'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
