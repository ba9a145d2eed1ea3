# config.py — lecture de l'environnement (.env pris en charge via python-dotenv)
from __future__ import annotations

import os
from datetime import timedelta
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from dotenv import load_dotenv

load_dotenv()

PG_SCHEMES = {"postgres", "postgresql", "postgresql+psycopg", "postgresql+psycopg2"}


# -------- Helpers --------
def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on", "y"}


def _first_env(*names: str) -> str | None:
    for name in names:
        val = os.getenv(name)
        if val:
            return val
    return None


def normalize_database_uri(uri: str | None) -> str | None:
    """URI Postgres → driver psycopg (v3), avec sslmode=require par défaut. Les autres URI passent telles quelles."""
    if not uri:
        return uri
    scheme, sep, rest = uri.partition("://")
    if not sep or scheme not in PG_SCHEMES:
        return uri
    parsed = urlparse(f"postgresql+psycopg://{rest}")
    params = dict(parse_qsl(parsed.query))
    params.setdefault("sslmode", "require")
    return urlunparse(parsed._replace(query=urlencode(params)))


def _oauth_callback_url() -> str:
    explicit = os.getenv("OAUTH_CALLBACK_URL")
    if explicit:
        return explicit
    backend = os.getenv("BACKEND_URL")
    if backend:
        return backend.rstrip("/") + "/api/auth/google/callback"
    return "http://localhost:3000/api/auth/google/callback"


# -------- Configuration --------
def load_config() -> dict:
    """Construit le dict de configuration Flask à partir de l'environnement."""
    env_name = (_first_env("APP_ENV", "FLASK_ENV") or "development").strip().lower()
    production = env_name == "production"

    db_url = normalize_database_uri(
        _first_env("SQLALCHEMY_DATABASE_URI", "DATABASE_URL", "POSTGRES_URL")
    )

    cfg = dict(
        ENV_NAME=env_name,
        SECRET_KEY=_first_env("SESSION_SECRET", "SECRET_KEY") or "fallback-secret-key",
        SQLALCHEMY_DATABASE_URI=db_url,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,

        # Sessions côté serveur (table http_sessions)
        SESSION_TYPE="sqlalchemy",
        SESSION_SQLALCHEMY_TABLE="http_sessions",
        SESSION_PERMANENT=True,
        PERMANENT_SESSION_LIFETIME=timedelta(hours=24),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SECURE=_env_bool("SESSION_COOKIE_SECURE", production),
        SESSION_COOKIE_SAMESITE="Lax",

        GOOGLE_CLIENT_ID=os.getenv("GOOGLE_CLIENT_ID", ""),
        GOOGLE_CLIENT_SECRET=os.getenv("GOOGLE_CLIENT_SECRET", ""),
        OAUTH_CALLBACK_URL=_oauth_callback_url(),

        CLIENT_URL=os.getenv("CLIENT_URL"),
        CORS_ORIGIN=os.getenv("CLIENT_URL") or "http://localhost:5173",

        PORT=int(os.getenv("PORT", "3000")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        CRASH_LOG=os.getenv("CRASH_LOG", "crash.log"),
    )

    if db_url and not db_url.startswith("sqlite"):
        cfg["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_pre_ping": True,
            "pool_recycle": 1800,
            "pool_size": 5,
            "max_overflow": 10,
        }
    return cfg
