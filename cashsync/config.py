import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'cashsync.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Public origin for share links, e.g. https://cashsync.example.com
    SHARE_BASE_URL = os.getenv("SHARE_BASE_URL")
    EXPENSES_PER_PAGE = int(os.getenv("EXPENSES_PER_PAGE", 20))
    TOP_EXPENSES = int(os.getenv("TOP_EXPENSES", 5))
    STREAM_KEEPALIVE_SECONDS = float(os.getenv("STREAM_KEEPALIVE_SECONDS", 15))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SHARE_BASE_URL = "https://cashsync.test"
    STREAM_KEEPALIVE_SECONDS = 1
