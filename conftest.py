import pytest
from fastapi.testclient import TestClient

from enrolment.api import create_app
from enrolment.database import Database
from enrolment.services import build_services


@pytest.fixture
def database(tmp_path):
    # A fresh SQLite file per test
    db = Database(str(tmp_path / "enrolment_test.db"))
    db.create_tables()
    return db


@pytest.fixture
def services(database):
    return build_services(database, id_card_prefix="STU")


@pytest.fixture
def client(database):
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client
