import os

from .config import DB_CONFIG, Config, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
STORE_BACKEND = os.getenv("STORE_BACKEND", "firestore")
DB_CONFIG = DB_CONFIG
FIREBASE_CREDENTIALS = Config.FIREBASE_CREDENTIALS
TRANSACTION_MAX_ATTEMPTS = Config.TRANSACTION_MAX_ATTEMPTS
ID_PREFIX = Config.ID_PREFIX
CLUB_NAME = Config.CLUB_NAME
LOG_LEVEL = Config.LOG_LEVEL

DEBUG = False

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
SEED_ADMIN_EMAIL = Config.SEED_ADMIN_EMAIL
SEED_ADMIN_PASSWORD = Config.SEED_ADMIN_PASSWORD
