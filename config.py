import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as flowdash.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "flowdash.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Single admin identity; hash + TOTP secret are provisioned out of band
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")
    TOTP_SECRET = os.getenv("TOTP_SECRET")
    TOTP_ISSUER = os.getenv("TOTP_ISSUER", "Flowdash")

    # Password step -> TOTP step: 5 minutes
    PENDING_TOKEN_TTL_SECONDS = 5 * 60

    # 24 hours session lifetime
    SESSION_LIFETIME_SECONDS = 24 * 60 * 60

    # TOTP (RFC 6238): 30s steps, accept one step either side
    TOTP_VALID_WINDOW = int(os.getenv("TOTP_VALID_WINDOW", "1"))
    TOTP_REPLAY_PROTECTION = os.getenv("TOTP_REPLAY_PROTECTION", "false").lower() == "true"

    # Simple IP rate limit for login endpoint
    LOGIN_RATE_WINDOW_SECONDS = 60      # window size
    LOGIN_RATE_MAX_REQUESTS = 15        # max login requests per IP per window

    # Basic app settings
    DEBUG = False
