import os
import tempfile
from datetime import date
from pathlib import Path
from uuid import uuid4

import pytest

TEST_DB_FILE = Path(tempfile.gettempdir()) / f"test_equipment_{uuid4().hex}.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_FILE.as_posix()}"
os.environ.setdefault("DB_BOOTSTRAP_MODE", "off")
os.environ.setdefault("EQUIPMENT_ID_REBASE", "on")

from app.database.base import Base  # noqa: E402
from app.database.session import SessionLocal, engine  # noqa: E402
from app.models.equipment import Equipment  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    engine.dispose()
    if TEST_DB_FILE.exists():
        TEST_DB_FILE.unlink()
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        if TEST_DB_FILE.exists():
            TEST_DB_FILE.unlink()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def build_sample_equipment(**overrides) -> Equipment:
    values = {
        "date_register": date(2025, 8, 30),
        "state": "AVARIADO",
        "customer": "RuIIuR",
        "user": "Joana",
        "category": "Portátil",
        "brand": "Lenovo",
        "model": "ThinkPad T14",
        "serial_number": "PF3XK9",
        "processor": "i5-1145G7",
        "memory_ram": "16GB",
        "storage": "512GB SSD",
        "operating_system": "Windows 11",
        "note": "Nao liga apos queda.",
        "responsible": "Daniel Marques",
    }
    values.update(overrides)
    return Equipment(**values)


@pytest.fixture
def make_equipment():
    return build_sample_equipment
