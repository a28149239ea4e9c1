import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")

# Buildings, their door numbers and floor range (1..15) residents can be issued links for
DEFAULT_COMMUNITY_LAYOUT = {
    "buildings": {
        "A": ["26", "28", "30"],
        "B": ["20", "22", "24"],
        "C": ["16", "18"],
        "D": ["8", "10", "12", "14"],
        "E": ["2", "6"],
    },
    "floors": list(range(1, 16)),
}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///community_vote.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Admin API tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-dev-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        minutes=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_MIN", "30"))
    )
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(
        days=int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES_DAYS", "7"))
    )

    # Resident login links (shared between the issuing and verifying side)
    RESIDENT_TOKEN_SECRET = os.getenv("RESIDENT_TOKEN_SECRET", "resident-dev-secret")
    RESIDENT_SESSION_KEY = os.getenv("RESIDENT_SESSION_KEY", "resident_session")
    PUBLIC_ORIGIN = os.getenv("PUBLIC_ORIGIN")  # falls back to the request host
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Polls
    DEFAULT_POLL_DURATION_MINUTES = int(os.getenv("DEFAULT_POLL_DURATION_MINUTES", "60"))
    COMMUNITY_LAYOUT = DEFAULT_COMMUNITY_LAYOUT

    STORAGE_RETRY_AFTER_SECONDS = int(os.getenv("STORAGE_RETRY_AFTER_SECONDS", "5"))
    LIVE_STREAM_HEARTBEAT_SECONDS = int(os.getenv("LIVE_STREAM_HEARTBEAT_SECONDS", "15"))
    LIVE_STREAM_QUEUE_SIZE = int(os.getenv("LIVE_STREAM_QUEUE_SIZE", "100"))

    SWAGGER = {"title": "Community Vote API", "uiversion": 3}
