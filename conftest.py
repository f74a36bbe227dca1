"""
Pytest configuration file.

This file is automatically loaded by pytest and provides global test configuration.
It ensures the project's source directory is added to the Python path so that
modules can be imported properly during test execution, points the application
at an in-memory database, and provides shared workbook and store fixtures.
"""
import io
import os
import sys
import tempfile

# Add the current directory to the Python path
# This ensures imports work correctly when running tests
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

# Must be set before config is imported by any test module
os.environ.setdefault("EXCEL_UPLOADER_DATABASE_URL", "sqlite://")
os.environ.setdefault("EXCEL_UPLOADER_LOG_DIR", os.path.join(tempfile.gettempdir(), "excel_uploader_test_logs"))

import pytest
from openpyxl import Workbook

from database import RecordRepository, create_db_engine, init_db
from sqlalchemy.orm import sessionmaker

HEADERS = ["username", "email", "age", "department", "salary", "is_active"]


def build_workbook(rows):
    """
    Build .xlsx bytes whose first sheet holds the given rows.

    Args:
        rows: List of rows, each a list of cell values (None leaves the cell empty)

    Returns:
        bytes: The saved workbook
    """
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook():
    """
    Fixture exposing the workbook builder.

    Returns:
        Callable[[list], bytes]: Builds workbook bytes from rows
    """
    return build_workbook


@pytest.fixture
def valid_rows():
    """
    Fixture providing a header row followed by three valid data rows.

    Returns:
        list: Worksheet rows
    """
    return [
        HEADERS,
        ["alice", "alice@example.com", 30, "Engineering", 85000.5, True],
        ["bob", "bob@example.org", 45, "Sales", 62000, False],
        ["carol", "carol.smith@example.co.uk", "28", None, "51000.75", "TRUE"],
    ]


@pytest.fixture
def session():
    """
    Fixture providing a session on a fresh in-memory database.

    Yields:
        Session: SQLAlchemy session with the tables created
    """
    engine = create_db_engine("sqlite://")
    init_db(engine)
    db_session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield db_session
    finally:
        db_session.close()
        engine.dispose()


@pytest.fixture
def repository(session):
    """
    Fixture providing a record repository on the in-memory database.

    Returns:
        RecordRepository: Repository bound to the test session
    """
    return RecordRepository(session)
