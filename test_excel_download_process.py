import io
import zipfile
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from openpyxl import load_workbook

from excel_download_process import (
    DATE_FORMAT,
    NUMBER_FORMAT,
    SHEET_NAME,
    ReportBuilder,
    records_to_frame,
)
from models import UserRecord
from utils.errors import PersistenceError

EXPECTED_HEADERS = ["ID", "Username", "Email", "Age", "Department", "Salary", "Is Active", "Created At"]


@pytest.fixture
def stored_records(repository):
    """
    Fixture storing two records, one without a department.

    Returns:
        list: The stored UserRecord objects
    """
    return repository.save_all([
        UserRecord(
            username="alice", email="alice@example.com", age=30, department="Engineering",
            salary=Decimal("1234567.89"), is_active=True, created_at=datetime(2024, 5, 17, 9, 30, 15)
        ),
        UserRecord(
            username="'=cmd|' /C calc'!A1", email="bob@example.com", age=45, department=None,
            salary=Decimal("0"), is_active=False, created_at=datetime(2024, 5, 18, 18, 0, 0)
        ),
    ])


def open_report(content):
    return load_workbook(io.BytesIO(content))[SHEET_NAME]


class TestRecordsToFrame:
    def test_columns_follow_report_order(self):
        """
        Test that the frame has the report columns even with no records.
        """
        frame = records_to_frame([])
        assert list(frame.columns) == EXPECTED_HEADERS
        assert frame.empty

    def test_decimal_salary_is_exported_as_number(self):
        """
        Test that Decimal salaries become floats and missing departments stay None.
        """
        record = UserRecord(
            id=1, username="a", email="a@example.com", age=1, department=None,
            salary=Decimal("10.5"), is_active=True, created_at=None
        )
        row = records_to_frame([record]).iloc[0]
        assert row["Salary"] == 10.5
        assert row["Department"] is None


class TestReportBuilder:
    """
    Tests for rendering stored records as a workbook.
    """

    def test_header_row_and_data_rows(self, repository, stored_records):
        """
        Test the header row and the values of the first record row.
        """
        sheet = open_report(ReportBuilder.generate_users_excel(repository))

        assert [cell.value for cell in sheet[1]] == EXPECTED_HEADERS
        assert sheet.max_row == 3

        first = [cell.value for cell in sheet[2]]
        assert first[0] == stored_records[0].id
        assert first[1:5] == ["alice", "alice@example.com", 30, "Engineering"]
        assert first[5] == pytest.approx(1234567.89)
        assert first[6] is True
        assert first[7] == datetime(2024, 5, 17, 9, 30, 15)

    def test_sanitized_text_is_exported_as_stored(self, repository, stored_records):
        """
        Test that a quoted formula is written back unchanged.
        """
        sheet = open_report(ReportBuilder.generate_users_excel(repository))
        assert sheet["B3"].value == "'=cmd|' /C calc'!A1"

    def test_absent_values_are_empty_cells(self, repository, stored_records):
        """
        Test that a missing department leaves its cell empty.
        """
        sheet = open_report(ReportBuilder.generate_users_excel(repository))
        assert sheet["E3"].value in (None, "")

    def test_cell_formats(self, repository, stored_records):
        """
        Test the number, date and header styles of the export.
        """
        sheet = open_report(ReportBuilder.generate_users_excel(repository))

        for column in ("A", "D", "F"):
            assert sheet[f"{column}2"].number_format == NUMBER_FORMAT
        assert sheet["H2"].number_format == DATE_FORMAT
        assert all(cell.font.bold for cell in sheet[1])
        assert sheet["A1"].alignment.horizontal == "center"

    def test_empty_store_exports_header_only(self, repository):
        """
        Test that an empty store still produces the header row.
        """
        sheet = open_report(ReportBuilder.generate_users_excel(repository))
        assert [cell.value for cell in sheet[1]] == EXPECTED_HEADERS
        assert sheet.max_row == 1

    def test_document_metadata_is_removed(self, repository, stored_records):
        """
        Test that title, author, application and custom properties are absent.
        """
        content = ReportBuilder.generate_users_excel(repository)

        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            names = archive.namelist()
            core_xml = archive.read("docProps/core.xml")
            app_xml = archive.read("docProps/app.xml")

        assert "docProps/custom.xml" not in names
        assert b"<dc:title" not in core_xml
        assert b"<dc:creator" not in core_xml
        assert b"lastModifiedBy" not in core_xml
        assert b"Application" not in app_xml

    def test_store_failure_propagates(self):
        """
        Test that a read failure is raised to the caller instead of exporting a partial sheet.
        """
        repository = MagicMock()
        repository.find_all.side_effect = PersistenceError("Unable to read records")
        with pytest.raises(PersistenceError):
            ReportBuilder.generate_users_excel(repository)
