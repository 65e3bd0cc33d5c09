from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "PlacementCracker"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"
    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_ttl_min: int = 720

    database_url: str = "sqlite:///./data/placementcracker.db"
    data_dir: Path = Path("./data")
    cors_origins: str = "http://127.0.0.1:3000"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_cover_letter: str = "gpt-5"
    openai_model_answer: str = "gpt-5"
    openai_timeout_sec: int = 60

    cover_letter_limit_policy: str = "counting"
    answer_limit_policy: str = "counting"
    cover_letter_daily_limit: int = 15
    answer_daily_limit: int = 20
    default_cover_letter_credits: int = 5
    default_answer_credits: int = 5

    token_counter: str = "tiktoken"
    tokenizer_encoding: str = "o200k_base"

    job_page_size: int = 20

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("cover_letter_limit_policy", "answer_limit_policy")
    @classmethod
    def validate_limit_policy(cls, value: str) -> str:
        allowed = {"counting", "balance"}
        if value not in allowed:
            raise ValueError(f"limit policy must be one of {sorted(allowed)}")
        return value

    @field_validator("token_counter")
    @classmethod
    def validate_token_counter(cls, value: str) -> str:
        allowed = {"tiktoken", "chars", "words"}
        if value not in allowed:
            raise ValueError(f"token_counter must be one of {sorted(allowed)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
