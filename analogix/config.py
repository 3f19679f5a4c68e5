import os
from dotenv import load_dotenv

from .consts import DEFAULT_TIMER_SETTINGS
from .utils import str_to_bool

load_dotenv()


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    # Keep CREATE_DB False in production
    CREATE_DB = str_to_bool(os.getenv("CREATE_DB", False))

    # Local cache file; None keeps the cache in memory
    LOCAL_CACHE_PATH = os.getenv("LOCAL_CACHE_PATH")
    DEFAULT_REGION = os.getenv("DEFAULT_REGION", "NSW")
    TIMER_STUDY_SECONDS = int(os.getenv("TIMER_STUDY_SECONDS", DEFAULT_TIMER_SETTINGS["study"]))
    TIMER_BREAK_SECONDS = int(os.getenv("TIMER_BREAK_SECONDS", DEFAULT_TIMER_SETTINGS["break"]))


class ProdConfig(BaseConfig):
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or ""
    # Heroku/old url fix
    if SQLALCHEMY_DATABASE_URI.startswith("postgres://"):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace(
            "postgres://", "postgresql://", 1
        )
    LOCAL_CACHE_PATH = os.getenv("LOCAL_CACHE_PATH", "local_cache.json")


class DevConfig(BaseConfig):
    DEBUG = True
    CREATE_DB = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or "sqlite:///dev.db"
    LOCAL_CACHE_PATH = os.getenv("LOCAL_CACHE_PATH", "local_cache.json")


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CREATE_DB = True
    LOCAL_CACHE_PATH = None
    DEFAULT_REGION = "NSW"
    TIMER_STUDY_SECONDS = DEFAULT_TIMER_SETTINGS["study"]
    TIMER_BREAK_SECONDS = DEFAULT_TIMER_SETTINGS["break"]
