import os

# Settings are read at import time; point the app at in-memory SQLite first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("TMDB_API_KEY", "")
os.environ.setdefault("ACTIVITY_PURGE_INTERVAL_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")
