from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import mysql.connector


@dataclass(frozen=True)
class MySQLConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10

    @classmethod
    def from_settings(cls, db_config: Dict[str, Any]) -> "MySQLConfig":
        """Build from the ``DB_CONFIG`` settings dict."""
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config.get("password") or ""),
            database=str(db_config["database"]),
            connect_timeout=int(db_config.get("connect_timeout", 10)),
        )


class ConnectionFactory:
    """Opens a short-lived connection per unit of work.

    Transactions need ``autocommit`` off so ``SELECT ... FOR UPDATE`` locks
    are held until the commit in ``db_cursor``.
    """

    def __init__(self, config: MySQLConfig):
        self.config = config

    def connect(self):
        return mysql.connector.connect(
            host=self.config.host,
            port=self.config.port,
            user=self.config.user,
            password=self.config.password,
            database=self.config.database,
            connection_timeout=self.config.connect_timeout,
            autocommit=False,
        )
