# teamboard/config.py
import os
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

from teamboard.models.message import MESSAGE_MAX_LENGTH

load_dotenv()  # Load environment variables from .env file


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Teamboard API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = _csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )

    # Registration rules
    min_password_length: int = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))

    # Chat settings
    message_max_length: int = Field(
        default=int(os.getenv("MESSAGE_MAX_LENGTH", str(MESSAGE_MAX_LENGTH))), validate_default=True
    )
    message_history_limit: int = int(os.getenv("MESSAGE_HISTORY_LIMIT", "100"))

    @field_validator("message_max_length")
    @classmethod
    def _fit_message_column(cls, v: int) -> int:
        # Longer messages would not fit the messages.message column
        return min(v, MESSAGE_MAX_LENGTH)


settings = Settings()  # Instantiate configuration
