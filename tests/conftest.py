"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
from sqlalchemy import text

from jobly.database import get_session, init_database
from jobly.logger import get_logger, reset_logger


@pytest.fixture(autouse=True)
def quiet_logger():
    """Route repository logging to a fresh logger with no console or file output."""
    reset_logger()
    logger = get_logger(enable_console=False, enable_file=False)
    yield logger
    reset_logger()


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def engine(db_url):
    engine = init_database(db_url)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Session over an empty schema."""
    session = get_session(engine=engine)
    yield session
    session.close()


@pytest.fixture
def seeded_session(db_session) -> Any:
    """Session over companies c1..c3 and jobs Job1..Job4 (all at c1)."""
    db_session.execute(text(
        """INSERT INTO companies (handle, name, num_employees, description, logo_url)
           VALUES ('c1', 'C1', 1, 'Desc1', 'http://c1.img'),
                  ('c2', 'C2', 2, 'Desc2', 'http://c2.img'),
                  ('c3', 'C3', 3, 'Desc3', 'http://c3.img')"""
    ))
    db_session.execute(text(
        """INSERT INTO jobs (title, salary, equity, company_handle)
           VALUES ('Job1', 100, 0.1, 'c1'),
                  ('Job2', 200, 0.2, 'c1'),
                  ('Job3', 300, 0, 'c1'),
                  ('Job4', NULL, NULL, 'c1')"""
    ))
    db_session.commit()
    return db_session


@pytest.fixture
def job_ids(seeded_session) -> List[int]:
    rows = seeded_session.execute(text("SELECT id FROM jobs ORDER BY id")).all()
    return [row[0] for row in rows]


@pytest.fixture
def new_company() -> Dict[str, Any]:
    return {
        "handle": "new",
        "name": "New",
        "description": "New Description",
        "numEmployees": 1,
        "logoUrl": "http://new.img",
    }


@pytest.fixture
def fixture_file(tmp_path) -> Path:
    """JSON file in the shape accepted by `jobly load`."""
    path = tmp_path / "fixtures.json"
    data = {
        "companies": [
            {"handle": "acme", "name": "Acme", "description": "Anvils", "numEmployees": 50},
            {"handle": "beta", "name": "Beta", "description": "Betas", "logoUrl": "https://beta.io/logo.png"},
        ],
        "jobs": [
            {"id": 10, "title": "Engineer", "salary": 120000, "equity": "0.01", "companyHandle": "acme"},
            {"id": 11, "title": "Designer", "salary": 90000, "companyHandle": "beta"},
        ],
    }
    path.write_text(json.dumps(data, indent=2))
    return path
