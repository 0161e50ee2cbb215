from datetime import datetime, timedelta

import pytest
import structlog

from omnia.engine.models import Sample
from omnia.engine.sample_store import SampleStore, build_store


def make_sample(day: int, month: int = 1, year: int = 2024, **values) -> Sample:
    return Sample(timestamp=datetime(year, month, day), **values)


def make_records(days: int, start: datetime = datetime(2024, 1, 1)):
    """Daily records in the Omnia export's camel-cased header format."""
    records = []
    for i in range(days):
        records.append({
            "dataHora": (start + timedelta(days=i)).strftime("%Y-%m-%d"),
            "batimentosMediaBpm": 60 + i,
            "batimentosMinBpm": 50 + i,
            "batimentosMaxBpm": 100 + i,
            "oximetriaSpo": 96.5,
            "spoMin": 93,
            "spoMax": 99,
            "passos": 5000 + 100 * i,
            "sonoMin": 400 + i,
            "scoreSono1100": 70 + i,
            "stress0100": 40 - i,
            "caloriasKcal": 2000 + 10 * i,
        })
    return records


@pytest.fixture(autouse=True)
def reset_logging():
    # configure_logging() binds the current stderr, which capsys closes after a test
    yield
    structlog.reset_defaults()


@pytest.fixture
def daily_store() -> SampleStore:
    """Twenty consecutive days, Jan 1 to Jan 20 2024."""
    return build_store(make_records(20))


@pytest.fixture
def empty_store() -> SampleStore:
    return SampleStore()
