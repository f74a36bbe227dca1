from decimal import Decimal

import pytest

from utils.errors import ErrorKind
from utils.validators import (
    sanitized,
    validate_age,
    validate_department,
    validate_email,
    validate_salary,
    validate_username,
)


class TestSanitized:
    def test_safe_text_is_returned_sanitized(self):
        """
        Test that safe text comes back sanitized in a success.
        """
        result = sanitized("  =1+1 ")
        assert result.is_success()
        assert result.data == "'=1+1"

    def test_malicious_text_becomes_validation_failure(self):
        """
        Test that a sanitizer rejection is turned into a failed Result
        rather than an exception.
        """
        result = sanitized("<script>alert(1)</script>")
        assert result.is_failure()
        assert result.error_kind is ErrorKind.VALIDATION
        assert result.error.startswith("Malicious content detected")


class TestValidateUsername:
    @pytest.mark.parametrize(
        "value, message",
        [
            (None, "Username cannot be empty"),
            ("", "Username cannot be empty"),
            ("   ", "Username cannot be empty"),
            ("a" * 101, "Username exceeds maximum length of 100 characters"),
        ],
        ids=["none", "empty", "blank", "too-long"]
    )
    def test_invalid_usernames(self, value, message):
        """
        Test the empty and too long username messages.
        """
        result = validate_username(value)
        assert result.is_failure()
        assert result.error == message

    def test_username_at_limit_is_accepted(self):
        """
        Test that a username of exactly the maximum length is accepted.
        """
        assert validate_username("a" * 100).data == "a" * 100


class TestValidateEmail:
    @pytest.mark.parametrize(
        "value",
        ["user@example.com", "first.last+tag@sub.example.org", "a_b-c@d.io"],
        ids=["simple", "plus-tag", "underscore-dash"]
    )
    def test_valid_addresses(self, value):
        """
        Test that common address forms match the email pattern.
        """
        assert validate_email(value).data == value

    @pytest.mark.parametrize(
        "value, message",
        [
            (None, "Email cannot be empty"),
            ("", "Email cannot be empty"),
            ("not-an-email", "Invalid email format: not-an-email"),
            ("user@domain", "Invalid email format: user@domain"),
            ("user@domain.c", "Invalid email format: user@domain.c"),
            ("a" * 250 + "@x.com", "Email exceeds maximum length of 255 characters"),
        ],
        ids=["none", "empty", "no-at", "no-tld", "short-tld", "too-long"]
    )
    def test_invalid_addresses(self, value, message):
        """
        Test that malformed addresses fail with the address in the message.
        """
        result = validate_email(value)
        assert result.is_failure()
        assert result.error == message


class TestValidateAge:
    @pytest.mark.parametrize("value", [0, 30, 150], ids=["min", "typical", "max"])
    def test_ages_in_range(self, value):
        """
        Test the age range bounds are inclusive.
        """
        assert validate_age(value).data == value

    @pytest.mark.parametrize("value", [-1, 151], ids=["below", "above"])
    def test_ages_out_of_range(self, value):
        """
        Test that ages outside 0 to 150 fail.
        """
        result = validate_age(value)
        assert result.is_failure()
        assert "Age must be between 0 and 150" in result.error

    def test_missing_age(self):
        """
        Test that a missing age is reported as null.
        """
        assert validate_age(None).error == "Age cannot be null"


class TestValidateDepartment:
    @pytest.mark.parametrize("value", [None, ""], ids=["none", "empty"])
    def test_department_is_optional(self, value):
        """
        Test that an empty department becomes None.
        """
        result = validate_department(value)
        assert result.is_success()
        assert result.data is None

    def test_department_too_long(self):
        """
        Test the department length limit message.
        """
        result = validate_department("d" * 101)
        assert result.error == "Department exceeds maximum length of 100 characters"


class TestValidateSalary:
    @pytest.mark.parametrize(
        "value",
        [Decimal("0"), Decimal("50000.50"), Decimal("10000000")],
        ids=["min", "typical", "max"]
    )
    def test_salaries_in_range(self, value):
        """
        Test the salary range bounds are inclusive.
        """
        assert validate_salary(value).data == value

    @pytest.mark.parametrize(
        "value",
        [Decimal("-0.01"), Decimal("10000000.01")],
        ids=["negative", "above-max"]
    )
    def test_salaries_out_of_range(self, value):
        """
        Test that salaries outside 0 to 10000000 fail.
        """
        result = validate_salary(value)
        assert result.is_failure()
        assert result.error == "Salary must be between 0 and 10000000"

    def test_missing_salary(self):
        """
        Test that a missing salary is reported as null.
        """
        assert validate_salary(None).error == "Salary cannot be null"

    @pytest.mark.parametrize(
        "value",
        [Decimal("100.555"), Decimal("0.004"), Decimal("9999999.999")],
        ids=["half-cent", "below-a-cent", "rounds-up-to-max"]
    )
    def test_more_than_two_decimal_places_is_rejected(self, value):
        """
        Test that sub-cent precision is reported instead of being rounded by the store.

        Args:
            value: Salary with three decimal places
        """
        result = validate_salary(value)
        assert result.is_failure()
        assert result.error == "Salary cannot have more than 2 decimal places"

    def test_trailing_zeros_beyond_two_places_are_accepted(self):
        """
        Test that extra zero digits do not count as extra precision.
        """
        assert validate_salary(Decimal("100.500")).is_success()
