from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://recruit:recruit@db:5432/recruit_timeline"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Engagement tiers: days since last activity
    HIGH_ENGAGEMENT_MAX_DAYS: int = 3
    MEDIUM_ENGAGEMENT_MAX_DAYS: int = 14

    # Nudge delay per engagement tier
    NUDGE_DELAY_HOURS_HIGH: int = 4
    NUDGE_DELAY_HOURS_DEFAULT: int = 24
    NUDGE_DELAY_HOURS_LOW: int = 72

    DASHBOARD_TASK_LIMIT: int = 3
    DASHBOARD_ACHIEVEMENT_LIMIT: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
