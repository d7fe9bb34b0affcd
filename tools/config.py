from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


@dataclass
class Settings:
    """Runtime configuration read from the environment (and ``.env``)."""

    api_key: Optional[str] = None
    model_name: str = "gpt-4o-mini"
    base_url: Optional[str] = None
    temperature: float = 1.0
    max_tokens: int = 2048
    llm_timeout: float = 60.0
    llm_max_retries: int = 2
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = ""
    db_name: str = "cards"
    port: int = 8000
    llm_log_path: str = "data/Log/llm_log.json"
    log_level: str = "INFO"

    @property
    def sqlalchemy_url(self) -> str:
        """``database_url`` when set, otherwise a PostgreSQL URL built from the parts."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{quote_plus(self.db_user)}:{quote_plus(self.db_password)}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        load_dotenv(dotenv_path)
        return cls(
            api_key=os.environ.get("api_key") or None,
            model_name=os.environ.get("model_name") or cls.model_name,
            base_url=os.environ.get("base_url") or None,
            temperature=_env_float("temperature", cls.temperature),
            max_tokens=_env_int("max_tokens", cls.max_tokens),
            llm_timeout=_env_float("llm_timeout", cls.llm_timeout),
            llm_max_retries=_env_int("llm_max_retries", cls.llm_max_retries),
            database_url=os.environ.get("database_url") or None,
            db_host=os.environ.get("db_host") or cls.db_host,
            db_port=_env_int("db_port", cls.db_port),
            db_user=os.environ.get("db_user") or cls.db_user,
            db_password=os.environ.get("db_password", cls.db_password),
            db_name=os.environ.get("db_name") or cls.db_name,
            port=_env_int("port", cls.port),
            llm_log_path=os.environ.get("llm_log_path") or cls.llm_log_path,
            log_level=(os.environ.get("log_level") or cls.log_level).upper(),
        )
