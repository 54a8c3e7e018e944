import os
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # REQUIRED SECRETS - fail fast if missing
    database_url: str = os.getenv("DATABASE_URL", "")

    # Feature flags
    demo_mode: bool = os.getenv("DEMO_MODE", "true").lower() == "true"
    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Health scoring
    health_model_version: str = os.getenv("HEALTH_MODEL_VERSION", "1.0.0")
    maintenance_history_limit: int = int(os.getenv("MAINTENANCE_HISTORY_LIMIT", "20"))
    recalculation_batch_size: int = int(os.getenv("RECALCULATION_BATCH_SIZE", "10"))
    alert_asset_list_limit: int = int(os.getenv("ALERT_ASSET_LIST_LIMIT", "10"))

    # App settings
    app_name: str = "HSSE Asset Health"
    app_version: str = "1.0.0"
    debug: bool = app_env == "development"

    class Config:
        env_file = ".env"
        extra = "allow"

    def validate_required_secrets(self):
        """Validate that all required secrets are present"""
        missing = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if missing:
            raise ValueError(f"Missing required environment variables: {', '.join(missing)}")

@lru_cache()
def get_settings() -> Settings:
    settings_instance = Settings()
    settings_instance.validate_required_secrets()
    return settings_instance

settings = get_settings()
