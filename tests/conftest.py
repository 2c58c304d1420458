import os
import sys
from pathlib import Path

# Settings are read at import time; keep tests off real Redis/Elasticsearch.
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("CACHE_MATERIALIZE", "false")
os.environ.setdefault("ES_URL", "http://localhost:9200")
os.environ.setdefault("LOG_LEVEL", "WARNING")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from registry_api.cache import CacheStore, get_cache_store  # noqa: E402
from registry_api.main import app  # noqa: E402
from registry_api.store.client import get_store  # noqa: E402
from tests.fake_store import FakeStore  # noqa: E402


def registration(record_id, record_type="company", approved=True, **location):
    doc = {
        "record_id": record_id,
        "record_type": record_type,
        "registration_number": f"REG-{record_id}",
        "name": f"Enterprise {record_id}",
        "approval_status": "APPROVED" if approved else "PENDING",
        "registration_date": f"2023-01-{int(record_id[1:]):02d}",
    }
    doc.update(location)
    return doc


def person(record_id, identity, full_name, nationality=None, record_type="company", **extra):
    doc = {
        "record_id": record_id,
        "record_type": record_type,
        "identity_number": identity,
        "full_name": full_name,
        "first_name": full_name.split()[0],
        "last_name": full_name.split()[-1],
        "nationality": nationality,
        "approval_status": "APPROVED",
        "registration_date": f"2022-05-{int(record_id[1:]):02d}",
        "date_of_birth": "1985-06-15",
    }
    doc.update(extra)
    return doc


DODOMA = {"region": "Dodoma", "district": "Dodoma Urban"}
ARUSHA = {"region": "Arusha", "district": "Arusha City", "ward": "Kaloleni"}
DAR = {"region": "Dar es Salaam", "district": "Kinondoni", "ward": "Mikocheni", "street": "Mwai Kibaki"}


@pytest.fixture
def registration_docs():
    return [
        registration("R1", location_type="office", **DODOMA),
        registration("R2", location_type="office", **DODOMA),
        registration("R3", location_type="office", ward="", **DODOMA),
        registration("R4", location_type="shop", **ARUSHA),
        registration("R5", location_type="shop", **ARUSHA),
        registration("R6", location_type="office", **ARUSHA),
        registration("R7", location_type="office", **ARUSHA),
        registration("R8", location_type="office", **DAR),
        registration("R9", location_type="office", **DAR),
        registration("R10", location_type="office", **DAR),
        registration("R11", approved=False, location_type="office", **DAR),
        registration("R12", approved=False, location_type="office", **DAR),
        registration("R13", record_type="business_name", region="Mwanza", district="Ilemela", ward="Buswelu"),
        registration("R14", region="", district="  "),
    ]


NIDA_MAKOLE = {"nida_region": "Dodoma", "nida_district": "Dodoma Urban", "nida_ward": "Makole"}
NIDA_KALOLENI = {"nida_region": "Arusha", "nida_district": "Arusha City", "nida_ward": "Kaloleni"}
HOME_MIKOCHENI = {
    "residence_region": "Dar es Salaam",
    "residence_district": "Kinondoni",
    "residence_ward": "Mikocheni",
    "residence_type": "apartment",
}


@pytest.fixture
def person_docs():
    return [
        person("P1", "ID-1", "Amina Juma Hassan", nationality="", gender="F", role="director", **NIDA_MAKOLE),
        person("P2", "ID-1", "Amina Juma Hassan", nationality="noResult", role="shareholder", **NIDA_MAKOLE),
        person("P3", "ID-1", "Amina Hassan", nationality="Kenyan", role="director", **HOME_MIKOCHENI),
        person("P4", "ID-2", "Baraka Mushi", nationality="Tanzanian", gender="M", **NIDA_KALOLENI),
        person("P5", "ID-2", "Baraka Mushi", nationality=None, gender="M", **HOME_MIKOCHENI),
        person("P6", "ID-3", "Chausiku Said", nationality="noResult", gender="F", **HOME_MIKOCHENI),
        person("P7", "ID-4", "Daudi Mushi", nationality="Ugandan", gender="M", **NIDA_KALOLENI),
        person("P8", "ID-4", "Daudi Mushi", nationality="Kenyan", gender="M"),
        person("P9", "ID-5", "John Mushi", nationality="Tanzanian", **NIDA_MAKOLE),
        person("P10", "ID-6", "John Mushi", nationality="Tanzanian", **HOME_MIKOCHENI),
        person("P11", "ID-7", "John Mushi", nationality="Tanzanian"),
        person("P12", "ID-8", "Zawadi Mrema", nationality="Tanzanian", record_type="business_name"),
    ]


@pytest.fixture
def make_client():
    def _make(store: FakeStore) -> TestClient:
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_cache_store] = lambda: CacheStore(None)
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
