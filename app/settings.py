"""Application settings and configuration (Pydantic v2)."""
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings."""

    # Database (MySQL)
    db_host: str = Field(default="localhost", description="MySQL host")
    db_port: int = Field(default=3306, description="MySQL port")
    db_user: str = Field(default="root")
    db_password: str = Field(default="")
    db_name: str = Field(default="students")

    # Pool: hard bound, excess requests wait for a free connection
    db_connection_limit: int = Field(default=10, ge=1)
    db_pool_timeout: Optional[float] = Field(
        default=None, description="Seconds to wait for a connection (None = forever)"
    )

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_origins: str = Field(default="*", description="Comma separated origins")

    # Logging
    service_name: str = Field(default="student-backend")
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="",
    )

    @property
    def database_url(self) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Global settings instance
settings = Settings()
