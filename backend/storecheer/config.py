# backend/storecheer/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storecheer.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identity provider: "local" (auth_identities table) or "supabase" (GoTrue REST)
    IDENTITY_PROVIDER = os.environ.get("IDENTITY_PROVIDER", "local")
    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    IDENTITY_PROVIDER_TIMEOUT = float(os.environ.get("IDENTITY_PROVIDER_TIMEOUT", "10"))

    # Max points a single user may send per calendar day
    DAILY_POINT_LIMIT = int(os.environ.get("DAILY_POINT_LIMIT", "50"))

    # Used when a user's store has no timezone configured
    DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "UTC")

    # Public sign-up creates provider accounts without a user profile
    ALLOW_SELF_SIGNUP = os.environ.get("ALLOW_SELF_SIGNUP", "false").lower() == "true"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
