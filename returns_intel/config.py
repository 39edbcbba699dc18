import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

DEFAULT_WORKFLOW_URL = "https://asia-south1.workflow.boltic.app/fc2e653e-295d-41a9-a2c7-d9b3dfbdb55f"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    workflow_url: str = DEFAULT_WORKFLOW_URL
    workflow_timeout_seconds: float = 50.0
    forward_timeout_seconds: float = 10.0
    config_db_path: str = "session_storage.db"
    default_forward_url: str = ""
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-numeric %s=%r", name, raw)
        return default


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        workflow_url=os.getenv("WORKFLOW_URL", DEFAULT_WORKFLOW_URL),
        workflow_timeout_seconds=_float_env("WORKFLOW_TIMEOUT_SECONDS", 50.0),
        forward_timeout_seconds=_float_env("FORWARD_TIMEOUT_SECONDS", 10.0),
        config_db_path=os.getenv("CONFIG_DB_PATH", "session_storage.db"),
        default_forward_url=os.getenv("BOLTIC_URL", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)
