from pydantic_settings import BaseSettings, SettingsConfigDict

import os

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./vamanager.db"

    # JWT signing key for dashboard sessions
    secret_key: str = os.getenv("JWT_SECRET", "change-me-in-production-for-jwt")
    admin_api_key: str | None = os.getenv("ADMIN_API_KEY")

    superadmin_email: str | None = os.getenv("SUPERADMIN_EMAIL")
    superadmin_password: str | None = os.getenv("SUPERADMIN_PASSWORD")

    # Local key-value store: encryption key, active org, backup index
    local_state_path: str = ".vamanager/state.json"
    backups_dir: str = "backups"
    backup_retention: int = 10

    cache_ttl_seconds: int = 30

    log_level: str = "INFO"
    axiom_token: str | None = os.getenv("AXIOM_TOKEN")
    axiom_dataset: str | None = os.getenv("AXIOM_DATASET")
    axiom_url: str = "https://api.axiom.co"
    axiom_org_id: str | None = os.getenv("AXIOM_ORG_ID")

settings = Settings()
