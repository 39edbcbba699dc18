import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from .schemas import MerchantConfig

logger = logging.getLogger(__name__)

KEY_PREFIX = "boltic_config_"


class ConfigStoreError(Exception):
    pass


class ConfigStore:
    """
    Per-merchant settings kept as one JSON blob per company id.

    Plain key-value over sqlite: last write wins, no versioning. Each call
    opens its own connection so the store can be shared across requests.
    """

    def __init__(self, path: str):
        self.path = path
        self._init_schema()

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path, timeout=5)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_schema(self):
        try:
            with self._session() as conn:
                conn.execute("CREATE TABLE IF NOT EXISTS kv_store (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        except sqlite3.Error as e:
            raise ConfigStoreError(f"cannot open config store at {self.path}: {e}") from e

    def _get_raw(self, key: str) -> Optional[str]:
        try:
            with self._session() as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise ConfigStoreError(str(e)) from e
        return row[0] if row else None

    def _set_raw(self, key: str, value: str):
        try:
            with self._session() as conn:
                conn.execute(
                    "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        except sqlite3.Error as e:
            raise ConfigStoreError(str(e)) from e

    def get_config(self, merchant_id: str) -> MerchantConfig:
        raw = self._get_raw(KEY_PREFIX + merchant_id)
        if raw is None:
            return MerchantConfig()
        try:
            return MerchantConfig.model_validate(json.loads(raw))
        except ValueError as e:
            raise ConfigStoreError(f"corrupt config for {merchant_id}: {e}") from e

    def set_config(self, merchant_id: str, config: MerchantConfig) -> MerchantConfig:
        stamped = config.model_copy(update={"updated_at": datetime.now(timezone.utc).isoformat()})
        self._set_raw(KEY_PREFIX + merchant_id, stamped.model_dump_json())
        logger.info("Config saved for company %s", merchant_id)
        return stamped
