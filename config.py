from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from models import EncodingMode


# =========================
# Upstream Contract
# =========================

BASE_QUESTION_URL = "https://opentdb.com/api.php"
TOKEN_URL = "https://opentdb.com/api_token.php"
CATEGORY_URL = "https://opentdb.com/api_category.php"
COUNT_URL = "https://opentdb.com/api_count.php"

MAX_AMOUNT = 50          # questions per request
RATE_LIMIT_SECONDS = 5   # one request per IP every 5 seconds


class Settings(BaseSettings):
    # =========================
    # Environment
    # =========================
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # =========================
    # Upstream endpoints
    # =========================
    QUESTION_URL: str = Field(default=BASE_QUESTION_URL)
    TOKEN_URL: str = Field(default=TOKEN_URL)
    CATEGORY_URL: str = Field(default=CATEGORY_URL)
    COUNT_URL: str = Field(default=COUNT_URL)

    # =========================
    # Client behaviour
    # =========================
    MANAGE_RATE_LIMIT: bool = Field(default=False)
    RATE_LIMIT_SECONDS: float = Field(default=RATE_LIMIT_SECONDS)
    AUTO_DECODE: bool = Field(default=False)
    DEFAULT_ENCODING: Optional[EncodingMode] = Field(default=None)

    # None disables the httpx timeout; callers bound latency themselves
    HTTP_TIMEOUT: Optional[float] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Singleton
settings = Settings()
