import random

import pytest

from src.api.dependencies import set_service
from src.services.database import Database
from src.services.roulette import RouletteService


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "roulette.db")


@pytest.fixture
def db(db_path):
    return Database(db_path)


@pytest.fixture
def service(db):
    return RouletteService(
        db,
        rng=random.Random(1234),
        storage_timeout=5.0,
        lock_timeout=5.0,
        max_history_limit=20,
    )


@pytest.fixture(autouse=True)
def reset_api_service():
    yield
    set_service(None)
