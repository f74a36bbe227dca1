from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserRecord(Base):
    """One validated, sanitized row of an uploaded spreadsheet."""
    __tablename__ = "user_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    department = Column(String(100), nullable=True)
    salary = Column(Numeric(precision=12, scale=2), nullable=False)
    is_active = Column(Boolean, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self) -> str:
        return f"UserRecord(id={self.id!r}, username={self.username!r}, email={self.email!r})"


class UploadStatus(str, Enum):
    FAILED = "Failed"
    SUCCESS = "Success"
    PARTIAL_SUCCESS = "Partial success"


class UploadOutcome(BaseModel):
    """
    Summary returned for one upload request.

    Attributes:
        file_name: Original name of the uploaded file
        size: Size of the upload in bytes
        upload_date: When the upload was processed
        status: "Failed", or the success / partial success message with counts
        errors: Per-row and file-level error messages; None on full success
        records_processed: Number of records actually stored
    """
    file_name: Optional[str] = None
    size: int = 0
    upload_date: datetime
    status: str
    errors: Optional[List[str]] = None
    records_processed: int = 0

    model_config = {"frozen": True}


class ErrorResponse(BaseModel):
    """Body returned by the exception handlers."""
    status: int
    error: str
    message: str
