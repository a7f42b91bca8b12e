import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DB_PATH = "data/bidmatch.db"


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    role_weights_path: Optional[Path] = None


def load_settings() -> Settings:
    """Read settings from the environment (after load_env)."""
    log_dir = os.getenv("BIDMATCH_LOG_DIR")
    weights = os.getenv("BIDMATCH_ROLE_WEIGHTS")
    return Settings(
        db_path=Path(os.getenv("BIDMATCH_DB_PATH") or DEFAULT_DB_PATH),
        log_level=(os.getenv("BIDMATCH_LOG_LEVEL") or "INFO").upper(),
        log_dir=Path(log_dir) if log_dir else None,
        role_weights_path=Path(weights) if weights else None,
    )
