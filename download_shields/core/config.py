import logging
from logging import Logger
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


BASE_DIRECTORY = Path()


class Configs(BaseSettings):
    model_config = SettingsConfigDict(env_file=BASE_DIRECTORY / ".env", extra="allow")

    name_app: str = Field(default="download-shields", alias="PROJECT_NAME")

    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")

    rubygems_url: str = Field(default="https://rubygems.org", alias="RUBYGEMS_URL")
    downstream_timeout: float = Field(default=10.0, alias="DOWNSTREAM_TIMEOUT")
    downstream_max_tries: int = Field(default=3, alias="DOWNSTREAM_MAX_TRIES")

    cookie_prefix: str = Field(default="cookies", alias="COOKIE_PREFIX")
    cookie_default_ttl: int = Field(default=86400, alias="COOKIE_DEFAULT_TTL")

    cors_origins: list[str] = Field(default=["http://127.0.0.1:99"], alias="CORS_ORIGINS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    logger_filename: str = Field(default="logs/app.log", alias="LOGGER_FILENAME")
    logger_maxbytes: int = Field(default=15000000, alias="LOGGER_MAXBYTES")
    logger_mod: str = Field(default="a", alias="LOGGER_MOD")
    logger_backup_count: int = Field(default=15, alias="LOGGER_BACKUP_COUNT")

    @property
    def logger(self) -> Logger:
        return logging.getLogger(self.name_app)


configs = Configs()  # pyright: ignore[reportCallIssue]
