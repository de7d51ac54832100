from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    NEWS_API_KEY: str = ""
    NEWS_LIVE_MODE: Literal["auto", "on", "off"] = "auto"
    FEED_PARSER: Literal["regex", "feedparser"] = "regex"
    AUTO_REFRESH: bool = True
    PORT: int = 8000

settings = Settings(_env_file=".env", _env_file_encoding="utf-8")
