"""
storage.py: key-value persistence for the two input records
=============================================================
The workbook file is a JSON object with one key per record:

    {"dcf_historical": {...}, "dcf_projections": {...}}

Each record is validated on its own. A record that is missing or malformed
falls back to its zeroed default while the other record is kept. Writes go to
a temporary file and are swapped in atomically; a failed write is logged and
otherwise ignored.
"""

import json
from pathlib import Path
from typing import Tuple

from config import HISTORICAL_STORAGE_KEY, PROJECTIONS_STORAGE_KEY, STORAGE_PATH
from input_model import HistoricalRecord, InvalidRecordError, ProjectionRecord
from logging_config import get_logger

logger = get_logger(__name__)


class WorkbookStore:
    def __init__(self, path: Path = STORAGE_PATH):
        self.path = Path(path)

    def _read_payload(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Unreadable workbook file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Workbook file %s is not a JSON object", self.path)
            return {}
        return data

    @staticmethod
    def _load_record(payload: dict, key: str, record_cls):
        if key not in payload:
            return record_cls()
        try:
            return record_cls.from_dict(payload[key])
        except InvalidRecordError as e:
            logger.warning("Stored %s is invalid, using defaults: %s", key, e)
            return record_cls()

    def load(self) -> Tuple[HistoricalRecord, ProjectionRecord]:
        payload = self._read_payload()
        return (
            self._load_record(payload, HISTORICAL_STORAGE_KEY, HistoricalRecord),
            self._load_record(payload, PROJECTIONS_STORAGE_KEY, ProjectionRecord),
        )

    def save(self, historical: HistoricalRecord, projections: ProjectionRecord) -> bool:
        payload = {
            HISTORICAL_STORAGE_KEY: historical.to_dict(),
            PROJECTIONS_STORAGE_KEY: projections.to_dict(),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save workbook to %s: %s", self.path, e)
            return False
        return True
