import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Frontend origins allowed to call the API (comma separated)
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
    ).split(',') if o.strip()]
    # Upper bound on concurrently held in-memory games
    MAX_SESSIONS = int(os.environ.get('MAX_SESSIONS', '1000'))
    # Seconds to wait after the owner socket drops before discarding its game
    SESSION_GRACE_SEC = float(os.environ.get('SESSION_GRACE_SEC', '2.0'))
    # Games without an owner socket expire after this many idle seconds
    SESSION_IDLE_SEC = float(os.environ.get('SESSION_IDLE_SEC', '900'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
