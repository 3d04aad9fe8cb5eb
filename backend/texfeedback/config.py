from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/texfeedback.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 3

    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Tried in order next to the source file; first existing one wins
    SYNCTEX_SUFFIXES: list[str] = [".sync", ".sync.gz", ".synctex", ".synctex.gz"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
