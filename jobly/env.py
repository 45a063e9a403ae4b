import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///data/jobly.db"


def load_env() -> None:
    """Load .env from the working directory if present.
    Variables already set in the environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def get_database_url() -> str:
    return os.getenv("JOBLY_DATABASE_URL", DEFAULT_DATABASE_URL)


def get_log_level() -> str:
    return os.getenv("JOBLY_LOG_LEVEL", "INFO")


def log_to_file() -> bool:
    """File logging is on unless JOBLY_LOG_TO_FILE is 0/false/no."""
    return os.getenv("JOBLY_LOG_TO_FILE", "1").strip().lower() not in {"0", "false", "no", "off"}
