# taskboard/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    DATABASE_URL: str
    SQLALCHEMY_DATABASE_URL: Optional[str] = None

    # Connection pool (one connection per unit of work)
    DB_POOL_SIZE: int = Field(20)
    DB_MAX_OVERFLOW: int = Field(0)
    DB_POOL_TIMEOUT: float = Field(20.0)   # seconds to wait for a free connection
    DB_POOL_RECYCLE: int = Field(1800)
    DB_POOL_PRE_PING: bool = Field(True)
    SQL_ECHO: bool = Field(False)

    # Reporting defaults
    LEADERBOARD_LIMIT: int = Field(10)
    TREND_MONTHS: int = Field(12)
    TREND_WEEKS: int = Field(12)

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        """
        SQLALCHEMY_DATABASE_URL wins over DATABASE_URL. A bare postgresql://
        URL is pointed at the asyncpg driver.
        """
        url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL
        if url.startswith("postgresql://") and "+asyncpg" not in url:
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.effective_database_url.startswith("sqlite")

settings = Settings()
