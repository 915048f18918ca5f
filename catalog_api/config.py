import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv(os.environ.get("ENV_FILE") or None)


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///catalog.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "change-me-in-production")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=int(os.environ.get("JWT_EXPIRE_DAYS", "7")))

    PASSWORD_HASH_METHOD = os.environ.get("PASSWORD_HASH_METHOD", "pbkdf2:sha256:600000")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
