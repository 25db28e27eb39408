from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional

from models.errors import StoreError
from models.records import (
    Category,
    Reading,
    Recommendation,
    RecommendationRecord,
    WindowedAverages,
)
from settings import get_settings

_SCHEMA = """
CREATE TABLE IF NOT EXISTS leituras (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    dispositivo_id TEXT NOT NULL,
    temperatura REAL NOT NULL,
    oxigenio REAL,
    ph REAL,
    data_hora TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_leituras_dispositivo_datahora
    ON leituras(dispositivo_id, data_hora DESC);

CREATE TABLE IF NOT EXISTS recomendacoes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    dispositivo_id TEXT NOT NULL,
    recomendacao TEXT NOT NULL,
    motivo TEXT,
    data_hora TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_recomendacoes_dispositivo
    ON recomendacoes(dispositivo_id, data_hora DESC);
"""

_WINDOWED_AVERAGES_SQL = """
SELECT
    AVG(temperatura) AS avg_temp,
    AVG(oxigenio) AS avg_ox,
    AVG(ph) AS avg_ph,
    COUNT(temperatura) AS cnt_temp,
    COUNT(oxigenio) AS cnt_ox,
    COUNT(ph) AS cnt_ph
FROM leituras
WHERE dispositivo_id = ?
  AND data_hora >= ?
  AND data_hora <= ?
"""


def _to_db_timestamp(value: datetime) -> str:
    # Fixed-width UTC text so lexicographic order matches chronological order.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SQLiteReadingStore:
    """SQLite-backed reading table and recommendation audit trail.

    A connection is opened per operation, so one instance can be shared by
    request handlers and the audit writer's threads.
    """

    def __init__(self, path: Path, timeout: float = 5.0) -> None:
        self.path = path
        self.timeout = timeout
        path.parent.mkdir(parents=True, exist_ok=True)
        self.initialize()

    def initialize(self) -> None:
        with self._connect() as connection:
            connection.executescript(_SCHEMA)

    def insert_reading(
        self,
        device_id: str,
        temperature: float,
        oxygen: Optional[float] = None,
        ph: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> Reading:
        recorded_at = timestamp or datetime.now(timezone.utc)
        with self._connect() as connection:
            cursor = connection.execute(
                "INSERT INTO leituras (dispositivo_id, temperatura, oxigenio, ph, data_hora) "
                "VALUES (?, ?, ?, ?, ?)",
                (device_id, temperature, oxygen, ph, _to_db_timestamp(recorded_at)),
            )
            row_id = cursor.lastrowid
        return Reading(
            id=int(row_id),
            device_id=device_id,
            temperature=temperature,
            oxygen=oxygen,
            ph=ph,
            timestamp=_from_db_timestamp(_to_db_timestamp(recorded_at)),
        )

    def query_windowed_averages(
        self, device_id: str, window_start: datetime, window_end: datetime
    ) -> WindowedAverages:
        with self._connect() as connection:
            row = connection.execute(
                _WINDOWED_AVERAGES_SQL,
                (device_id, _to_db_timestamp(window_start), _to_db_timestamp(window_end)),
            ).fetchone()
        return WindowedAverages(
            avg_temp=row["avg_temp"],
            avg_ox=row["avg_ox"],
            avg_ph=row["avg_ph"],
            cnt_temp=row["cnt_temp"],
            cnt_ox=row["cnt_ox"],
            cnt_ph=row["cnt_ph"],
        )

    def list_readings(self, device_id: str, limit: int) -> list[Reading]:
        with self._connect() as connection:
            rows = connection.execute(
                "SELECT id, dispositivo_id, temperatura, oxigenio, ph, data_hora FROM leituras "
                "WHERE dispositivo_id = ? ORDER BY data_hora DESC, id DESC LIMIT ?",
                (device_id, limit),
            ).fetchall()
        return [self._reading_from_row(row) for row in rows]

    def latest_reading(self, device_id: str) -> Optional[Reading]:
        readings = self.list_readings(device_id, limit=1)
        return readings[0] if readings else None

    def insert_recommendation(self, record: RecommendationRecord) -> RecommendationRecord:
        payload = json.dumps(
            [item.to_payload() for item in record.recommendations], ensure_ascii=False
        )
        with self._connect() as connection:
            cursor = connection.execute(
                "INSERT INTO recomendacoes (dispositivo_id, recomendacao, motivo, data_hora) "
                "VALUES (?, ?, ?, ?)",
                (record.device_id, payload, record.motive, _to_db_timestamp(record.timestamp)),
            )
            row_id = cursor.lastrowid
        return RecommendationRecord(
            id=int(row_id),
            device_id=record.device_id,
            recommendations=record.recommendations,
            motive=record.motive,
            timestamp=record.timestamp,
        )

    def list_recommendations(self, device_id: str, limit: int) -> list[RecommendationRecord]:
        with self._connect() as connection:
            rows = connection.execute(
                "SELECT id, dispositivo_id, recomendacao, motivo, data_hora FROM recomendacoes "
                "WHERE dispositivo_id = ? ORDER BY data_hora DESC, id DESC LIMIT ?",
                (device_id, limit),
            ).fetchall()
        records: list[RecommendationRecord] = []
        for row in rows:
            items = tuple(
                Recommendation(category=Category(item["tipo"]), text=item["texto"])
                for item in json.loads(row["recomendacao"])
            )
            records.append(
                RecommendationRecord(
                    id=row["id"],
                    device_id=row["dispositivo_id"],
                    recommendations=items,
                    motive=row["motivo"] or "",
                    timestamp=_from_db_timestamp(row["data_hora"]),
                )
            )
        return records

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            connection = sqlite3.connect(self.path, timeout=self.timeout)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open reading store at {self.path}: {exc}") from exc
        connection.row_factory = sqlite3.Row
        try:
            with connection:
                yield connection
        except sqlite3.Error as exc:
            raise StoreError(f"Reading store query failed: {exc}") from exc
        finally:
            connection.close()

    @staticmethod
    def _reading_from_row(row: sqlite3.Row) -> Reading:
        return Reading(
            id=row["id"],
            device_id=row["dispositivo_id"],
            temperature=row["temperatura"],
            oxygen=row["oxigenio"],
            ph=row["ph"],
            timestamp=_from_db_timestamp(row["data_hora"]),
        )


@lru_cache
def build_default_store(path: Optional[str] = None) -> SQLiteReadingStore:
    settings = get_settings()
    database_path = settings.database_path if path is None else path
    return SQLiteReadingStore(path=Path(database_path))
