from os import getenv
from dotenv import load_dotenv

load_dotenv()

class Config:

    ALLOWED_ORIGINS: list = getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")


    POSTGRES_USER: str = getenv("POSTGRES_USER")
    POSTGRES_PASSWORD: str = getenv("POSTGRES_PASSWORD")
    POSTGRES_HOST: str = getenv("POSTGRES_HOST", "db")
    POSTGRES_DB: str = getenv("POSTGRES_DB")
    POSTGRES_PORT: str = getenv("POSTGRES_PORT", "5432")

    @property
    def DATABASE_URL(self) -> str | None:
        url = getenv("DATABASE_URL")
        if url:
            return url
        if not all([self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_DB]):
            return None
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Закрытие просроченных возможностей
    OPPORTUNITY_CLOSER_ENABLED: bool = getenv("OPPORTUNITY_CLOSER_ENABLED", "true").lower() in ("1", "true", "yes")
    OPPORTUNITY_CLOSER_INTERVAL_MINUTES: int = int(getenv("OPPORTUNITY_CLOSER_INTERVAL_MINUTES", "15"))

    # Ожидание базы перед миграциями
    DB_CONNECT_RETRIES: int = int(getenv("DB_CONNECT_RETRIES", "5"))
    DB_CONNECT_DELAY_SECONDS: float = float(getenv("DB_CONNECT_DELAY_SECONDS", "2"))

    LOG_FILE: str = getenv("LOG_FILE", "app.log")

    # Порт приложения
    APP_PORT: int = int(getenv("APP_PORT", "8000"))

    def validate(self) -> None:
        """Проверяет наличие обязательных переменных окружения."""
        if not self.DATABASE_URL:
            raise ValueError(
                "Missing required environment variables: DATABASE_URL "
                "(or POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB)"
            )
        if self.OPPORTUNITY_CLOSER_INTERVAL_MINUTES <= 0:
            raise ValueError("OPPORTUNITY_CLOSER_INTERVAL_MINUTES must be positive")
        if self.DB_CONNECT_RETRIES <= 0:
            raise ValueError("DB_CONNECT_RETRIES must be positive")

settings = Config()
settings.validate()
