SECRET_KEY = "test-secret"
STORE_BACKEND = "memory"
DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "lab_portal_test",
}
FIREBASE_CREDENTIALS = ""
TRANSACTION_MAX_ATTEMPTS = 5
ID_PREFIX = "SAE"
CLUB_NAME = "SAE CUSAT"
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
SEED_ADMIN_EMAIL = ""
SEED_ADMIN_PASSWORD = ""
