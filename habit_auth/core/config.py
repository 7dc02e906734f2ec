import multiprocessing
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str | List[str]) -> List[str]:
    if isinstance(value, list):
        return value
    return [v.strip() for v in str(value).split(",") if v and v.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HABITAUTH_",
        extra="ignore",
    )

    app_name: str = "Habit Accountability Auth API"
    database_url: str = "sqlite:///./habit_auth.db"
    db_echo: bool = False

    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    # 0 picks a default from the database: one worker on sqlite, which has a
    # single writer lock, 2 * cpu + 1 on a server database
    workers: int = 0
    log_dir: str = ""

    # challenge policy knobs
    attempt_limit: int = 5
    max_code_age_seconds: int = 15 * 60
    backoff_seconds_raw: str = "1,10,30,60"
    code_length: int = 6

    # empty means codes are only logged (local/dev)
    sms_webhook_url: str = ""
    sms_timeout_seconds: float = 5.0

    cors_origins_raw: str = "http://localhost:5173"
    enable_docs: bool = True

    @field_validator("attempt_limit", "code_length", "max_code_age_seconds")
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("backoff_seconds_raw")
    @classmethod
    def _backoff_table(cls, v: str) -> str:
        steps = _split_csv(v)
        if not steps:
            raise ValueError("backoff table must have at least one entry")
        for step in steps:
            if not step.isdigit():
                raise ValueError(f"backoff entry {step!r} is not a non-negative integer")
        return v

    @property
    def cors_origins(self) -> List[str]:
        parsed = _split_csv(self.cors_origins_raw)
        return parsed or ["http://localhost:5173"]

    @property
    def worker_count(self) -> int:
        if self.workers > 0:
            return self.workers
        if self.database_url.startswith("sqlite"):
            return 1
        return multiprocessing.cpu_count() * 2 + 1

    @property
    def backoff_seconds(self) -> List[int]:
        return [int(v) for v in _split_csv(self.backoff_seconds_raw)]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
