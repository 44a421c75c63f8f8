import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    env: str
    database_url: str
    log_level: str
    sql_echo: bool

    notice_sync_actor_id: str

    @property
    def is_production(self) -> bool:
        return self.env in ("prod", "production")


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        env=_getenv("ENV", "development").lower(),
        database_url=_getenv("DATABASE_URL", "sqlite:///portal.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        sql_echo=_getenv("SQL_ECHO", "0") == "1",
        notice_sync_actor_id=_getenv("NOTICE_SYNC_ACTOR_ID", "system:notice-sync"),
    )
