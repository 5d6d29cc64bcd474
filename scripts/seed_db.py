"""Create (or promote) the super-admin account named by SEED_ADMIN_EMAIL.

Usage: ``python scripts/seed_db.py [email] [password]``
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.lab_portal.lab_portal.container import build_container, build_store
from src.lab_portal.lab_portal.members.seed import ensure_super_admin


def main(argv: list[str]) -> int:
    settings = importlib.import_module(get_settings_module())
    email = argv[0] if argv else settings.SEED_ADMIN_EMAIL
    password = argv[1] if len(argv) > 1 else settings.SEED_ADMIN_PASSWORD
    if not (email and password):
        print("Set SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD or pass them as arguments")
        return 1

    if settings.STORE_BACKEND == "memory":
        print("Warning: STORE_BACKEND=memory, the seeded account disappears when this script exits")

    store = build_store(
        settings.STORE_BACKEND,
        db_config=settings.DB_CONFIG,
        firebase_credentials=settings.FIREBASE_CREDENTIALS or None,
        max_attempts=settings.TRANSACTION_MAX_ATTEMPTS,
    )
    container = build_container(store=store, id_prefix=settings.ID_PREFIX, club_name=settings.CLUB_NAME)
    uid = ensure_super_admin(
        container.store,
        container.members_repo,
        container.auth,
        email=email,
        password=password,
        club_name=settings.CLUB_NAME,
    )
    print(f"OK: super-admin {email} -> {uid} ({settings.STORE_BACKEND})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
