from pydantic import model_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str
    mongodb_db_name: str = "tweetbot"
    mongodb_collection: str = "botUsers"

    # Telegram
    telegram_bot_token: str
    telegram_webhook_secret: str = ""  # Optional: for webhook verification

    # X (Twitter) OAuth2 app
    x_client_id: str
    x_client_secret: str
    x_callback_url: str = ""  # Required in production
    local_callback_url: str = "http://localhost:8000/auth/x/callback"

    # DeepSeek (OpenAI-compatible API)
    deepseek_api_key: str
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"

    # Environment
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @model_validator(mode="after")
    def check_callback_url(self) -> "Settings":
        if self.is_production and not self.x_callback_url:
            raise ValueError("x_callback_url is required in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def callback_url(self) -> str:
        """Redirect target registered with the X app for this environment."""
        if self.is_production:
            return self.x_callback_url
        return self.x_callback_url or self.local_callback_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
