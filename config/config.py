import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "lab-portal-dev-secret"

    # memory | mysql | firestore
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "memory")

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "lab_portal")

    # Service-account file path or inline JSON; empty means Application Default Credentials
    FIREBASE_CREDENTIALS = os.environ.get("FIREBASE_CREDENTIALS", "")

    TRANSACTION_MAX_ATTEMPTS = int(os.environ.get("TRANSACTION_MAX_ATTEMPTS", "5"))
    ID_PREFIX = os.environ.get("ID_PREFIX", "SAE")
    CLUB_NAME = os.environ.get("CLUB_NAME", "SAE CUSAT")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SEED_ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "")
    SEED_ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "")


DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}
