import io
import logging
from decimal import Decimal
from typing import Any, Dict, List, Sequence

import pandas as pd
from openpyxl.packaging.custom import CustomPropertyList
from openpyxl.styles import Alignment, Border, Font
from openpyxl.utils import get_column_letter
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from models import UserRecord
from utils.excel_format import strip_application_properties
from utils.log_context import LogContext

logger = logging.getLogger(__name__)

SHEET_NAME = "Users Data"
REPORT_COLUMNS = [
    ("ID", "id"),
    ("Username", "username"),
    ("Email", "email"),
    ("Age", "age"),
    ("Department", "department"),
    ("Salary", "salary"),
    ("Is Active", "is_active"),
    ("Created At", "created_at"),
]
NUMBER_COLUMNS = ("ID", "Age", "Salary")
DATE_COLUMNS = ("Created At",)
NUMBER_FORMAT = "#,##0"
DATE_FORMAT = "yyyy-mm-dd hh:mm:ss"
MAX_COLUMN_WIDTH = 60


def _export_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


def records_to_frame(records: Sequence[UserRecord]) -> pd.DataFrame:
    """
    Lay out records as report rows in the order the store returned them.

    Absent values stay None so they are written as empty cells.
    """
    rows: List[Dict[str, Any]] = [
        {header: _export_value(getattr(record, attribute)) for header, attribute in REPORT_COLUMNS}
        for record in records
    ]
    return pd.DataFrame(rows, columns=[header for header, _ in REPORT_COLUMNS], dtype=object)


def remove_metadata(workbook: Workbook) -> None:
    """Clear the document properties that describe who produced the workbook."""
    props = workbook.properties
    props.title = None
    props.creator = None
    props.lastModifiedBy = None
    workbook.custom_doc_props = CustomPropertyList()


def _style_sheet(worksheet: Worksheet, frame: pd.DataFrame) -> None:
    header_font = Font(bold=True)
    header_alignment = Alignment(horizontal="center")
    for column_index, header in enumerate(frame.columns, start=1):
        header_cell = worksheet.cell(row=1, column=column_index)
        header_cell.font = header_font
        header_cell.alignment = header_alignment
        header_cell.border = Border()

        if header in NUMBER_COLUMNS:
            number_format = NUMBER_FORMAT
        elif header in DATE_COLUMNS:
            number_format = DATE_FORMAT
        else:
            number_format = None

        width = len(header)
        for row_index in range(2, len(frame) + 2):
            cell = worksheet.cell(row=row_index, column=column_index)
            if cell.value is None:
                continue
            if number_format:
                cell.number_format = number_format
            width = max(width, len(str(cell.value)))
        worksheet.column_dimensions[get_column_letter(column_index)].width = min(width + 2, MAX_COLUMN_WIDTH)


class ReportBuilder:
    """Renders stored records as a downloadable workbook."""

    @staticmethod
    def generate_users_excel(repository) -> bytes:
        """
        Build the records export.

        Args:
            repository: Record store exposing ``find_all``

        Returns:
            bytes: The .xlsx workbook with document metadata removed

        Raises:
            PersistenceError: If the records cannot be read
        """
        with LogContext("records export"):
            records = repository.find_all()
            frame = records_to_frame(records)

            buffer = io.BytesIO()
            with pd.ExcelWriter(buffer, engine="openpyxl", datetime_format=DATE_FORMAT) as writer:
                frame.to_excel(writer, sheet_name=SHEET_NAME, index=False)
                remove_metadata(writer.book)
                _style_sheet(writer.sheets[SHEET_NAME], frame)

            content = strip_application_properties(buffer.getvalue())
            logger.info("Generated records export", extra={"record_count": len(records), "size": len(content)})
            return content
