from pathlib import Path
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{BASE_DIR / 'flashcards.db'}"
    data_dir: Path = BASE_DIR / "data"
    log_dir: Path = BASE_DIR / "data" / "logs"
    session_target_size: int = 20
    pass_threshold: float = 0.6
    # Raise instead of log when attempts reference items missing from the catalog
    strict_consistency: bool = False

    model_config = {
        "env_file": [BASE_DIR / ".env", BASE_DIR.parent / ".env"],
        "env_prefix": "FLASHCARDS_",
        "extra": "ignore",
    }


settings = Settings()
