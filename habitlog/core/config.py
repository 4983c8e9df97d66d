from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Where JsonFileStore keeps the state document.
    HABITLOG_DATA_PATH: str = "habitlog.json"

    # 0 = Sunday, 1 = Monday. Used for fresh documents and failed imports.
    DEFAULT_WEEK_STARTS_ON: int = 1

    HEATMAP_WEEKS: int = 12
    STATS_WINDOW_DAYS: int = 30

    LOG_LEVEL: str = "INFO"

    @property
    def default_week_starts_on(self) -> int:
        return 0 if self.DEFAULT_WEEK_STARTS_ON == 0 else 1


settings = Settings()
