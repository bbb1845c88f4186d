from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BITBUCKET_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    base_url: str = "http://localhost:7990"
    username: str | None = None
    password: str | None = None
    token: str | None = None
    timeout_seconds: float = 30.0
    page_size: int = 25
    verify_ssl: bool = True
    log_json: bool = True
