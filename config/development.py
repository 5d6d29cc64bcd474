import os

from .config import DB_CONFIG, Config, env_flag

SECRET_KEY = Config.SECRET_KEY
STORE_BACKEND = Config.STORE_BACKEND
DB_CONFIG = DB_CONFIG
FIREBASE_CREDENTIALS = Config.FIREBASE_CREDENTIALS
TRANSACTION_MAX_ATTEMPTS = Config.TRANSACTION_MAX_ATTEMPTS
ID_PREFIX = Config.ID_PREFIX
CLUB_NAME = Config.CLUB_NAME
LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")

DEBUG = True

# Applies database/schema.sql on startup (mysql backend only, idempotent)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Creates the SEED_ADMIN_EMAIL super-admin on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
SEED_ADMIN_EMAIL = Config.SEED_ADMIN_EMAIL
SEED_ADMIN_PASSWORD = Config.SEED_ADMIN_PASSWORD
