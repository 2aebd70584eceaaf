from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Service Desk API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "servicedesk"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Every service-day comparison uses this civil timezone, regardless of
    # the timezone the database stores timestamps in.
    SERVICE_TIMEZONE: str = "America/Los_Angeles"

    # Capacity
    SHOWER_SLOT_CAPACITY: int = 2
    # Seed values for the service_settings row; the row itself is the live value.
    DEFAULT_MAX_ONSITE_LAUNDRY_SLOTS: int = 5
    DEFAULT_OFFSITE_LAUNDRY_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
