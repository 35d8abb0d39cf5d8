from decimal import Decimal
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    PROJECT_NAME: str = "Online Exam Platform"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 6  # 6 hours

    # Checked by AccessCodeVerifier on admin login
    ADMIN_ACCESS_CODE: SecretStr

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Database Configuration
    DATABASE_HOST: Optional[str] = None
    DATABASE_PORT: Optional[str] = None
    DATABASE_USER: Optional[str] = None
    DATABASE_PASSWORD: Optional[str] = None
    DATABASE_NAME: Optional[str] = None

    DATABASE_URL: str = ""
    TEST_DATABASE_URL: Optional[str] = None
    DATABASE_POOL_TIMEOUT: int = 10
    DATABASE_STATEMENT_TIMEOUT_MS: int = 5000

    def __init__(self, **data):
        super().__init__(**data)
        if not self.DATABASE_URL and self.DATABASE_HOST:
            self.DATABASE_URL = (
                f'postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}'
                f'@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}'
            )
        if not self.DATABASE_URL:
            self.DATABASE_URL = "sqlite:///./exam.db"

    # Marking scheme
    MARK_CORRECT_ANSWER: Decimal = Decimal("1")
    MARK_INCORRECT_ANSWER: Decimal = Decimal("-0.25")
    MARK_UNANSWERED: Decimal = Decimal("0")

    # Session timing
    COUNTDOWN_TICK_SECONDS: int = 1
    OVERDUE_SWEEP_SECONDS: int = 60

    # Transient storage failures
    STORAGE_RETRY_ATTEMPTS: int = 3
    STORAGE_RETRY_BACKOFF_SECONDS: float = 0.2

    # Results statistics; a score of at least this share of total_questions passes
    PASS_PERCENTAGE: Decimal = Decimal("50")

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "logs"

settings = Settings()
