from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field("sqlite:///users.db")
    api_title: str = Field("User Resource API")
    access_token_expire_minutes: int = Field(30)
    refresh_token_expire_days: int = Field(30)
    jwt_secret: str = Field("secret")
    jwt_algorithm: str = Field("HS256")
    bcrypt_rounds: int = Field(8, ge=4, le=31)
    auth_rate_limit: str = Field("5/minute")
    rate_limit_enabled: bool = Field(True)


settings = Settings()
