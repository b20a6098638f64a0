from pydantic_settings import BaseSettings, SettingsConfigDict
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FTM_", env_file=".env", extra="ignore")
    DATABASE_URL: str = "sqlite:///./family_tasks.db"

    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_MIN: int = 60 * 24
    REFRESH_TOKEN_DAYS: int = 30

    # proof photos, served back under /proofs
    PROOF_UPLOAD_DIR: str = "static/proofs"
    PUBLIC_BASE_URL: str = ""
    MAX_PROOF_BYTES: int = 5 * 1024 * 1024

    LOG_LEVEL: str = "INFO"

    # scripts/serve.py
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    RELOAD: bool = False
settings = Settings()
