import io
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from models import UploadOutcome, UploadStatus, UserRecord
from utils.cells import Cell, cell_at, is_blank_row, to_boolean, to_decimal, to_integer, to_text
from utils.errors import ErrorKind, PersistenceError
from utils.log_context import LogContext, new_request_id
from utils.result import Result
from utils.validators import (
    sanitized,
    validate_age,
    validate_department,
    validate_email,
    validate_salary,
    validate_username,
)

logger = logging.getLogger(__name__)

USERNAME = "username"
EMAIL = "email"
AGE = "age"
DEPARTMENT = "department"
SALARY = "salary"
IS_ACTIVE = "is_active"
EXPECTED_HEADERS = [USERNAME, EMAIL, AGE, DEPARTMENT, SALARY, IS_ACTIVE]

# Normalized header name -> column position, built fresh for each upload
HeaderIndex = Dict[str, int]

# Evaluated in order; the first failing field rejects the row
FIELD_RULES: Dict[str, Callable[[Cell], Result[Any]]] = {
    USERNAME: lambda cell: sanitized(to_text(cell)).and_then(validate_username),
    EMAIL: lambda cell: sanitized(to_text(cell)).and_then(validate_email),
    AGE: lambda cell: to_integer(cell).and_then(validate_age),
    DEPARTMENT: lambda cell: sanitized(to_text(cell)).and_then(validate_department),
    SALARY: lambda cell: to_decimal(cell).and_then(validate_salary),
    IS_ACTIVE: to_boolean,
}

NO_VALID_DATA = "No valid data found in the Excel file"


def normalize_header(cell: Cell) -> str:
    return (to_text(cell) or "").strip().lower()


def resolve_headers(header_cells: Sequence[Cell]) -> Result[HeaderIndex]:
    """
    Map each normalized header name to its column position.

    Args:
        header_cells: Cells of the first worksheet row

    Returns:
        Result holding the HeaderIndex, or a MISSING_HEADERS failure naming
        the required columns that are absent
    """
    header_index: HeaderIndex = {}
    for position, cell in enumerate(header_cells):
        # A repeated name keeps its last position
        header_index[normalize_header(cell)] = position

    missing = [name for name in EXPECTED_HEADERS if name not in header_index]
    if missing:
        logger.error("Missing headers", extra={"missing_headers": missing})
        return Result.missing_headers(
            f"The following required columns are missing: {', '.join(missing)}"
        )
    logger.debug("Resolved headers", extra={"header_index": header_index})
    return Result.ok(header_index)


def map_row(cells: Sequence[Cell], header_index: HeaderIndex) -> Result[UserRecord]:
    """
    Build a record from one data row.

    Fields are read at the positions resolved from the header row, coerced,
    sanitized and validated in the order of FIELD_RULES.

    Args:
        cells: Cells of the data row
        header_index: Positions of the required columns

    Returns:
        Result holding an unsaved UserRecord, or the first VALIDATION or
        PROCESSING failure met in the row
    """
    values = {}
    for field, rule in FIELD_RULES.items():
        result = rule(cell_at(cells, header_index[field]))
        if result.is_failure():
            return result
        values[field] = result.data
    return Result.ok(UserRecord(**values))


def build_outcome(
    file_name: Optional[str],
    size: int,
    stored_count: int,
    errors: Sequence[str]
) -> UploadOutcome:
    """
    Decide the final status of an upload.

    ======  ======  ==========================================  ============
    stored  errors  status                                      errors field
    ======  ======  ==========================================  ============
    0       any     Failed                                      errors (*)
    n > 0   0       Success - n records processed successfully  None
    n > 0   m > 0   Partial success - n records processed ...   errors
    ======  ======  ==========================================  ============

    (*) "No valid data found in the Excel file" when no other error was recorded.
    """
    errors = list(errors)
    if stored_count == 0:
        status = UploadStatus.FAILED.value
        if not errors:
            errors.append(NO_VALID_DATA)
        reported_errors: Optional[List[str]] = errors
    elif not errors:
        status = f"{UploadStatus.SUCCESS.value} - {stored_count} records processed successfully"
        reported_errors = None
    else:
        status = (
            f"{UploadStatus.PARTIAL_SUCCESS.value} - {stored_count} records processed "
            f"with {len(errors)} errors"
        )
        reported_errors = errors

    return UploadOutcome(
        file_name=file_name,
        size=size,
        upload_date=datetime.now(),
        status=status,
        errors=reported_errors,
        records_processed=stored_count,
    )


class UploadProcessor:
    """
    Runs the upload pipeline for a single workbook.

    The workbook is read, its header row resolved, every data row mapped to
    a record, and the valid records stored as one batch.
    """

    @staticmethod
    def process_upload(
        file_name: Optional[str],
        content: bytes,
        repository,
        max_rows: int
    ) -> UploadOutcome:
        """
        Process an uploaded workbook whose format was already verified.

        Args:
            file_name: Original name of the upload
            content: Workbook bytes
            repository: Record store exposing ``save_all``
            max_rows: Maximum accepted number of data rows

        Returns:
            UploadOutcome: Summary of stored records and collected errors
        """
        request_id = new_request_id()
        size = len(content) if content else 0
        log_context = {"request_id": request_id, "file_name": file_name, "size": size}
        logger.info("Processing Excel upload", extra=log_context)

        if not content:
            return build_outcome(file_name, size, 0, ["File is empty or null"])

        with LogContext("workbook read", **log_context):
            sheet_result = UploadProcessor._read_sheet(content)
        if sheet_result.is_failure():
            logger.warning(f"Workbook read failed: {sheet_result.error}", extra=log_context)
            return build_outcome(file_name, size, 0, [sheet_result.error])

        rows = sheet_result.data
        # The header is the first row holding any value
        header_position = next((i for i, row in enumerate(rows) if not is_blank_row(row)), None)
        if header_position is None:
            return build_outcome(file_name, size, 0, ["Excel file is empty"])

        header_result = resolve_headers(rows[header_position])
        if header_result.is_failure():
            return build_outcome(file_name, size, 0, [f"Invalid header format: {header_result.error}"])
        header_index = header_result.data

        data_rows = rows[header_position + 1:]
        total_data_rows = len(data_rows)
        if total_data_rows > max_rows:
            logger.warning(
                "Row limit exceeded",
                extra={**log_context, "total_rows": total_data_rows, "max_rows": max_rows}
            )
            return build_outcome(
                file_name, size, 0,
                [f"File contains too many rows ({total_data_rows}). Maximum allowed: {max_rows}"]
            )

        with LogContext("row mapping", **log_context, total_rows=total_data_rows):
            records, errors = UploadProcessor._map_rows(
                data_rows, header_index, first_row_number=header_position + 2
            )

        stored_count = 0
        if records:
            try:
                with LogContext("batch save", **log_context, batch_size=len(records)):
                    stored_count = len(repository.save_all(records))
            except PersistenceError as e:
                errors.append(f"Error saving data to database: {e}")
                stored_count = 0

        outcome = build_outcome(file_name, size, stored_count, errors)
        logger.info(
            f"Upload finished: {outcome.status}",
            extra={**log_context, "records_processed": stored_count, "error_count": len(errors)}
        )
        return outcome

    @staticmethod
    def _read_sheet(content: bytes) -> Result[List[List[Cell]]]:
        """
        Read the first worksheet into rows of typed cells.

        Args:
            content: Workbook bytes

        Returns:
            Result holding every worksheet row, header row first
        """
        try:
            df = pd.read_excel(
                io.BytesIO(content),
                sheet_name=0,
                header=None,
                dtype=object,
                keep_default_na=False,
                engine="openpyxl",
            )
        except Exception as e:
            # Any reader failure means the upload is not a usable workbook
            return Result.fail(f"Error reading Excel file: {e}", error_kind=ErrorKind.FORMAT)

        rows = [
            [Cell.from_raw(value) for value in raw]
            for raw in df.itertuples(index=False, name=None)
        ]
        return Result.ok(rows)

    @staticmethod
    def _map_rows(
        data_rows: Sequence[Sequence[Cell]],
        header_index: HeaderIndex,
        first_row_number: int = 2
    ) -> Tuple[List[UserRecord], List[str]]:
        """
        Map every data row, collecting records and per-row error messages.

        Row numbers are 1-based sheet positions; ``first_row_number`` is the
        sheet row just below the header.
        Rows whose cells are all blank are skipped without an error.
        """
        records: List[UserRecord] = []
        errors: List[str] = []
        for row_number, cells in enumerate(data_rows, start=first_row_number):
            if is_blank_row(cells):
                continue
            result = map_row(cells, header_index)
            if result.is_success():
                records.append(result.data)
            else:
                logger.debug(
                    f"Row {row_number} rejected",
                    extra={"row_number": row_number, "error_kind": result.error_kind.value}
                )
                errors.append(f"Error processing row {row_number}: {result.error}")
        return records, errors
