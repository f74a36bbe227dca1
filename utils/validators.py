"""
Field constraints for uploaded user records.

Each validator takes an already coerced value and returns a Result holding
the value unchanged on success, so they chain after the cell coercions
with ``Result.and_then``.
"""
import re
from decimal import Decimal
from typing import Optional

from utils.errors import MaliciousContentError
from utils.result import Result
from utils.sanitizer import sanitize

MAX_USERNAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_DEPARTMENT_LENGTH = 100
MIN_AGE = 0
MAX_AGE = 150
MIN_SALARY = Decimal("0")
MAX_SALARY = Decimal("10000000")
# Matches the Numeric(12, 2) salary column
SALARY_DECIMAL_PLACES = 2
SALARY_QUANTUM = Decimal("0.01")

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


def sanitized(text: Optional[str]) -> Result[Optional[str]]:
    """Run text through the sanitizer, turning a rejection into a failed Result."""
    try:
        return Result.ok(sanitize(text))
    except MaliciousContentError as e:
        return Result.invalid_input(str(e))


def validate_username(username: Optional[str]) -> Result[str]:
    if username is None or not username.strip():
        return Result.invalid_input("Username cannot be empty")
    if len(username) > MAX_USERNAME_LENGTH:
        return Result.invalid_input(
            f"Username exceeds maximum length of {MAX_USERNAME_LENGTH} characters"
        )
    return Result.ok(username)


def validate_email(email: Optional[str]) -> Result[str]:
    if email is None or not email.strip():
        return Result.invalid_input("Email cannot be empty")
    if len(email) > MAX_EMAIL_LENGTH:
        return Result.invalid_input(
            f"Email exceeds maximum length of {MAX_EMAIL_LENGTH} characters"
        )
    if not EMAIL_PATTERN.match(email):
        return Result.invalid_input(f"Invalid email format: {email}")
    return Result.ok(email)


def validate_age(age: Optional[int]) -> Result[int]:
    if age is None:
        return Result.invalid_input("Age cannot be null")
    if age < MIN_AGE or age > MAX_AGE:
        return Result.invalid_input(f"Age must be between {MIN_AGE} and {MAX_AGE}")
    return Result.ok(age)


def validate_department(department: Optional[str]) -> Result[Optional[str]]:
    """Department is optional; an empty value is stored as None."""
    if not department:
        return Result.ok(None)
    if len(department) > MAX_DEPARTMENT_LENGTH:
        return Result.invalid_input(
            f"Department exceeds maximum length of {MAX_DEPARTMENT_LENGTH} characters"
        )
    return Result.ok(department)


def validate_salary(salary: Optional[Decimal]) -> Result[Decimal]:
    """
    Salary must lie in range and fit the stored scale of two decimal places.

    A value with more precision is rejected rather than rounded, so the
    stored and exported amount is exactly the uploaded one.
    """
    if salary is None:
        return Result.invalid_input("Salary cannot be null")
    if salary < MIN_SALARY or salary > MAX_SALARY:
        return Result.invalid_input(f"Salary must be between {MIN_SALARY} and {MAX_SALARY}")
    if salary != salary.quantize(SALARY_QUANTUM):
        return Result.invalid_input(
            f"Salary cannot have more than {SALARY_DECIMAL_PLACES} decimal places"
        )
    return Result.ok(salary)
