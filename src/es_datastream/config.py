from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

from .errors import ConfigError
from .utils import MAX_TIME_PRECISION


@dataclass
class OutputConfig:
    data_stream_name: str
    hosts: list[str] = field(default_factory=lambda: ["http://localhost:9200"])
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    verify_certs: bool = True
    request_timeout: float = 30.0
    # fractional-second digits in the generated @timestamp
    time_precision: int = 3

    def __post_init__(self) -> None:
        if not isinstance(self.data_stream_name, str) or not self.data_stream_name:
            raise ConfigError("'data_stream_name' is required")
        if isinstance(self.hosts, str):
            self.hosts = split_hosts(self.hosts)
        if not 0 <= self.time_precision <= MAX_TIME_PRECISION:
            raise ConfigError(
                f"'time_precision' must be within 0..{MAX_TIME_PRECISION}: <{self.time_precision}>"
            )

    @classmethod
    def from_dict(cls, config: dict) -> "OutputConfig":
        try:
            return cls(**config)
        except TypeError as e:
            raise ConfigError(f"invalid output configuration: {e}") from e


def split_hosts(value: str) -> list[str]:
    return [h.strip() for h in value.split(",") if h.strip()]


class Settings(BaseSettings):
    ES_HOSTS: str = "http://localhost:9200"
    ES_USERNAME: Optional[str] = None
    ES_PASSWORD: Optional[str] = None
    ES_API_KEY: Optional[str] = None
    ES_VERIFY_CERTS: bool = True
    ES_REQUEST_TIMEOUT: float = 30.0
    ES_DATA_STREAM_NAME: Optional[str] = None
    ES_TIME_PRECISION: int = 3
    ES_DEAD_LETTER_PATH: Optional[str] = None

    @property
    def hosts(self) -> list[str]:
        return split_hosts(self.ES_HOSTS)

    def to_output_config(self, data_stream_name: Optional[str] = None) -> OutputConfig:
        name = data_stream_name or self.ES_DATA_STREAM_NAME
        if not name:
            raise ConfigError("'data_stream_name' is required (set ES_DATA_STREAM_NAME)")
        return OutputConfig(
            data_stream_name=name,
            hosts=self.hosts,
            username=self.ES_USERNAME,
            password=self.ES_PASSWORD,
            api_key=self.ES_API_KEY,
            verify_certs=self.ES_VERIFY_CERTS,
            request_timeout=self.ES_REQUEST_TIMEOUT,
            time_precision=self.ES_TIME_PRECISION,
        )

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
