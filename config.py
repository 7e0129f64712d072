import os
from typing import Optional, List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = os.getenv("DEBUG", "true").lower() == "true"
    LOG_LEVEL: str = "INFO"

    DECISION_STORE: str = "file"
    DATA_DIR: str = "./data"
    DECISIONS_FILE: str = "decisions.json"
    DATABASE_URL: str = "sqlite:///./decision_journal.db"

    CORS_ORIGINS: Optional[str] = None

    TOP_TAGS_LIMIT: int = 20
    RECENT_COMPLETED_CAP: int = 10
    INSIGHT_LOCALE: str = "ko"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def decisions_path(self) -> str:
        return os.path.join(self.DATA_DIR, self.DECISIONS_FILE)

    def cors_origin_list(self) -> List[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        origins = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        return origins or ["*"]

settings = Settings()

SUPPORTED_STORES = ("file", "database")
SUPPORTED_LOCALES = ("ko", "en")

def validate_settings(current: Settings = None):
    current = current or settings
    warnings = []
    errors = []

    if current.DECISION_STORE not in SUPPORTED_STORES:
        errors.append(f"DECISION_STORE must be one of {', '.join(SUPPORTED_STORES)}")

    if current.INSIGHT_LOCALE not in SUPPORTED_LOCALES:
        errors.append(f"INSIGHT_LOCALE must be one of {', '.join(SUPPORTED_LOCALES)}")

    if current.TOP_TAGS_LIMIT <= 0:
        errors.append("TOP_TAGS_LIMIT must be positive")

    if not current.DEBUG and not current.CORS_ORIGINS:
        warnings.append("CORS_ORIGINS not set - every origin is allowed")

    return errors, warnings

_errors, _warnings = validate_settings()
for w in _warnings:
    print(f"WARNING: {w}")
for e in _errors:
    print(f"ERROR: {e}")
