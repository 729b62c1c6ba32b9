from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # App
    app_name: str = "group-members"
    debug: bool = False
    environment: str = "development"  # development | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Database
    db_engine: str = "sqlite"  # sqlite | mysql
    db_host: str = "localhost"
    db_port: str = "3306"
    db_user: str = "groupmembers"
    db_password: str = "groupmembers"
    db_name: str = "groupmembers"
    sqlite_path: str = "./group_members.db"
    database_url: Optional[str] = None  # overrides everything above

    # Member listing
    members_per_page: int = 50
    max_per_page: int = 100

    # Site administrator created on first start-up
    bootstrap_admin_username: str = "admin"
    bootstrap_admin_password: str = "admin"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        if self.db_engine == "mysql":
            return (
                f"mysql+pymysql://{self.db_user}:{self.db_password}"
                f"@{self.db_host}:{self.db_port}/{self.db_name}"
            )
        return f"sqlite:///{self.sqlite_path}"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
