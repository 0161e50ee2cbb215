"""
Sample Store

Builds the single, read-only source of truth the dashboard reads from:
- Maps normalized records onto the canonical Sample schema
- Sorts samples by timestamp
- Collapses duplicate timestamps (the later record wins)

The store is created once at startup and never mutated afterwards.
"""

import json
import math
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import pandas as pd
import structlog

from .csv_normalizer import is_relative_date_word
from .models import METRIC_FIELDS, Sample

logger = structlog.get_logger()


# Record keys that can carry the sample timestamp, in priority order
TIMESTAMP_KEYS = ("dataHora", "timestamp", "dateTime", "date", "data")

# Camel-cased header names -> canonical Sample fields. Covers the Portuguese
# headers of the Omnia export and their English equivalents.
FIELD_ALIASES: Dict[str, str] = {
    # Heart rate
    "batimentosMediaBpm": "heart_rate_mean",
    "batimentosMinBpm": "heart_rate_min",
    "batimentosMaxBpm": "heart_rate_max",
    "heartRate": "heart_rate_mean",
    "heartRateMean": "heart_rate_mean",
    "heartRateAvgBpm": "heart_rate_mean",
    "heartRateMeanBpm": "heart_rate_mean",
    "heartRateMin": "heart_rate_min",
    "heartRateMinBpm": "heart_rate_min",
    "heartRateMax": "heart_rate_max",
    "heartRateMaxBpm": "heart_rate_max",
    # Oxygenation
    "oximetriaSpo": "spo2_mean",
    "spoMin": "spo2_min",
    "spoMax": "spo2_max",
    "spo2": "spo2_mean",
    "spo2Mean": "spo2_mean",
    "spo2Min": "spo2_min",
    "spo2Max": "spo2_max",
    # Activity
    "passos": "steps",
    "steps": "steps",
    "caloriasKcal": "calories",
    "calories": "calories",
    "caloriesKcal": "calories",
    # Sleep and stress
    "sonoMin": "sleep_minutes",
    "sleepMin": "sleep_minutes",
    "sleepMinutes": "sleep_minutes",
    "scoreSono1100": "sleep_score",
    "sleepScore": "sleep_score",
    "sleepScore1100": "sleep_score",
    "stress0100": "stress_score",
    "stress": "stress_score",
    "stressScore": "stress_score",
}

# Canonical field names are accepted as record keys too
FIELD_ALIASES.update({name: name for name in METRIC_FIELDS})


@dataclass(frozen=True)
class SampleStore:
    """
    Immutable, time-ordered sequence of samples.

    Timestamps are unique and strictly increasing.
    """
    samples: Tuple[Sample, ...] = ()

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def __getitem__(self, index):
        return self.samples[index]

    @property
    def is_empty(self) -> bool:
        return not self.samples

    @property
    def first(self) -> Optional[Sample]:
        return self.samples[0] if self.samples else None

    @property
    def last(self) -> Optional[Sample]:
        return self.samples[-1] if self.samples else None

    @property
    def previous(self) -> Optional[Sample]:
        """The sample recorded just before the last one."""
        return self.samples[-2] if len(self.samples) > 1 else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a record timestamp.

    Accepts ISO dates ("2024-01-05"), ISO instants ("2024-01-05T00:00:00.000Z")
    and anything else pandas can read, except relative words such as "today"
    that would resolve to the current date. Timezone-aware values are converted to
    naive UTC so every sample in a store compares against every other.
    """
    if isinstance(value, datetime):
        parsed = pd.Timestamp(value)
    elif isinstance(value, str) and value.strip():
        if is_relative_date_word(value):
            return None
        try:
            parsed = pd.to_datetime(value.strip(), errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    else:
        return None

    if pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)
    return parsed.to_pydatetime()


def coerce_metric(value: Any) -> Optional[float]:
    """Return a finite float, or None for empty, non-numeric or non-finite values."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().replace(",", ".", 1)
        if not text or "_" in text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _find_timestamp(record: Dict[str, Any]) -> Any:
    for key in TIMESTAMP_KEYS:
        if key in record and record[key] != "":
            return record[key]
    return None


def sample_from_record(record: Dict[str, Any]) -> Optional[Sample]:
    """
    Build a Sample from one normalized record.

    Returns None when the record has no parseable timestamp. Keys that do
    not map onto a canonical field are ignored.
    """
    raw_timestamp = _find_timestamp(record)
    timestamp = parse_timestamp(raw_timestamp)
    if timestamp is None:
        logger.warning("sample_timestamp_unparsable", value=raw_timestamp)
        return None

    values: Dict[str, Optional[float]] = {}
    for key, raw_value in record.items():
        if key in TIMESTAMP_KEYS:
            continue

        field_name = FIELD_ALIASES.get(key)
        if field_name is None:
            logger.debug("sample_key_unmapped", key=key)
            continue
        # The first alias seen for a field wins
        if values.get(field_name) is not None:
            continue

        number = coerce_metric(raw_value)
        if number is None and raw_value not in ("", None):
            logger.warning(
                "sample_value_not_numeric",
                timestamp=timestamp.isoformat(),
                field=field_name,
                value=raw_value,
            )
        values[field_name] = number

    return Sample(timestamp=timestamp, **values)


def build_store(records: Iterable[Dict[str, Any]]) -> SampleStore:
    """
    Build a Sample Store from normalized records.

    Steps:
    1. Map each record onto a Sample (records without a timestamp are skipped)
    2. Sort by timestamp (ascending, stable)
    3. Collapse duplicate timestamps, keeping the later record

    Args:
        records: Normalized records, e.g. the output of the CSV normalizer

    Returns:
        Immutable store with unique, strictly increasing timestamps
    """
    samples: List[Sample] = []
    skipped = 0
    for record in records:
        sample = sample_from_record(record)
        if sample is None:
            skipped += 1
            continue
        samples.append(sample)

    # Step 2: Sort by timestamp (stable, so input order breaks ties)
    samples.sort(key=lambda s: s.timestamp)

    # Step 3: Collapse duplicates
    deduplicated: List[Sample] = []
    for sample in samples:
        if deduplicated and deduplicated[-1].timestamp == sample.timestamp:
            logger.warning(
                "store_duplicate_timestamp",
                timestamp=sample.timestamp.isoformat(),
            )
            deduplicated[-1] = sample
            continue
        deduplicated.append(sample)

    logger.info("store_built", samples=len(deduplicated), skipped=skipped)
    return SampleStore(samples=tuple(deduplicated))


def load_store(path: str) -> SampleStore:
    """
    Load a Sample Store from a JSON array of records on disk.

    A missing file yields an empty store.

    Raises:
        ValueError: If the file is not valid JSON or not a list of records
    """
    if not os.path.exists(path):
        logger.warning("store_file_missing", path=path)
        return SampleStore()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in data file {path}: {e}")

    if not isinstance(data, list):
        raise ValueError(f"Data file must contain a list of records, got {type(data).__name__}")

    return build_store(item for item in data if isinstance(item, dict))
