from contextlib import asynccontextmanager
import logging
from http import HTTPStatus

from fastapi import FastAPI, Depends, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import settings
from database import RecordRepository, get_record_repository, init_db
from excel_download_process import ReportBuilder
from excel_upload_process import UploadProcessor, build_outcome
from models import ErrorResponse
from utils.errors import FieldValidationError, PersistenceError
from utils.excel_format import create_excel_headers, has_excel_format
from utils.log_context import configure_logging

configure_logging(settings.log_dir, settings.log_level)
logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = (
    "Invalid file format. Please upload a valid Excel file (.xlsx). "
    "File signature validation failed."
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Record store ready")
    yield

# Initialize FastAPI app with metadata
app = FastAPI(
    title="Excel Record Uploader API",
    description="API for uploading, validating and exporting user records as Excel files",
    version="2.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def _error_response(status: HTTPStatus, error: str, message: str) -> JSONResponse:
    body = ErrorResponse(status=status.value, error=error, message=message)
    return JSONResponse(status_code=status.value, content=body.model_dump())

@app.exception_handler(FieldValidationError)
async def handle_validation_error(request: Request, exc: FieldValidationError):
    return _error_response(HTTPStatus.BAD_REQUEST, "Validation Error", str(exc))

@app.exception_handler(PersistenceError)
async def handle_persistence_error(request: Request, exc: PersistenceError):
    return _error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Storage Error", str(exc))

@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return _error_response(
        HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error", "An unexpected error occurred"
    )

# API Endpoints
@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}

@app.post(
    "/api/excel/upload",
    tags=["Excel Processing"]
)
async def upload_excel_file(
    file: UploadFile = File(...),
    repository: RecordRepository = Depends(get_record_repository)
):
    """
    Upload an .xlsx workbook of user records.

    The first row must name the columns username, email, age, department,
    salary and is_active (any case, any order). Valid rows are stored in one
    batch; invalid rows are reported by sheet row number.

    Returns:
        JSON UploadOutcome with file_name, size, upload_date, status, errors
        and records_processed. 200 when no error was recorded, 400 otherwise.
    """
    try:
        content = await file.read()
    except OSError:
        logger.error("Could not read uploaded file", extra={"file_name": file.filename}, exc_info=True)
        content = None

    if not has_excel_format(file.content_type, content):
        logger.warning(
            "Rejected upload with invalid format",
            extra={"file_name": file.filename, "content_type": file.content_type}
        )
        outcome = build_outcome(file.filename, len(content or b""), 0, [INVALID_FORMAT_MESSAGE])
    else:
        outcome = await run_in_threadpool(
            UploadProcessor.process_upload,
            file.filename,
            content,
            repository,
            settings.max_rows
        )

    status_code = HTTPStatus.BAD_REQUEST if outcome.errors else HTTPStatus.OK
    return JSONResponse(status_code=status_code.value, content=outcome.model_dump(mode="json"))

@app.get(
    "/api/excel/users",
    tags=["Excel Processing"]
)
def download_users_excel(repository: RecordRepository = Depends(get_record_repository)):
    """
    Download every stored record as an .xlsx workbook.
    """
    content = ReportBuilder.generate_users_excel(repository)
    return Response(content=content, headers=create_excel_headers(settings.export_file_name, content))

# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Excel Record Uploader API in development mode.")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
