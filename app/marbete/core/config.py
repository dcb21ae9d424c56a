from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "MARBETE-CLOUD"
    DATABASE_URL: str = "sqlite+pysqlite:///./marbete.db"
    INGEST_MAX_ITEMS: int = 1000
    CATALOG_MAX_PAGE_SIZE: int = 1000
    COUNTING_HISTORY_LIMIT: int = 500
    VERIFICATION_HISTORY_LIMIT: int = 100
    LEGACY_PIECES_PER_HOUR: int = 400
    NOT_IN_CATALOG_LABEL: str = "NOT IN CATALOG"
    METRICS_ENABLED: bool = True

settings = Settings()
