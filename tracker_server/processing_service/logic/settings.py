import os
import logging
from datetime import timedelta, tzinfo
from pathlib import Path
from dotenv import load_dotenv

from tracker_server.shared.utils import get_zone

logger = logging.getLogger(__name__)

SERVICE_ROOT = Path(__file__).parent.parent
DOTENV_PATH = SERVICE_ROOT / '.env'

if DOTENV_PATH.exists():
    load_dotenv(DOTENV_PATH)
    logger.info(f"Loaded .env file from {DOTENV_PATH}")


class Settings:
    """Settings for the aggregation engine (bucketing, timeline, goals)."""

    # --- Timezone ---
    # Zone used for day buckets and the default timeline day.
    LOCAL_TZ: str = os.getenv("LOCAL_TZ", "UTC")

    # --- Write-path contract ---
    MAX_INTERVAL_HOURS: float = float(os.getenv("MAX_INTERVAL_HOURS", "10"))

    # --- Timeline ---
    TIMELINE_LOOKBACK_MINUTES: int = int(os.getenv("TIMELINE_LOOKBACK_MINUTES", "60"))
    EMPTY_SEGMENT_NAME: str = os.getenv("EMPTY_SEGMENT_NAME", "No record")
    EMPTY_SEGMENT_COLOR: str = os.getenv("EMPTY_SEGMENT_COLOR", "#E2E8F0")

    @property
    def timeline_lookback(self) -> timedelta:
        return timedelta(minutes=self.TIMELINE_LOOKBACK_MINUTES)

    def local_zone(self) -> tzinfo:
        return get_zone(self.LOCAL_TZ)


settings = Settings()
