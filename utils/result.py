from typing import Any, Callable, Generic, Optional, TypeVar

from utils.errors import ErrorKind

T = TypeVar('T')
U = TypeVar('U')


class Result(Generic[T]):
    """
    Outcome of a header, row or cell step of the upload pipeline.

    A step either yields a value or a message describing why the input was
    rejected. Row mapping never raises for bad data: the failure travels
    back to the upload loop, which records it against the row number and
    moves on.

    Attributes:
        success (bool): Whether the step produced a value
        data (Optional[T]): The produced value (None on failure)
        error (Optional[str]): Message shown to the uploader (None on success)
        error_kind (Optional[ErrorKind]): Category of the failure (None on success)
    """
    __slots__ = ("success", "data", "error", "error_kind")

    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        error: Optional[str] = None,
        error_kind: Optional[ErrorKind] = None
    ):
        self.success = success
        self.data = data if success else None
        self.error = None if success else error
        self.error_kind = None if success else (error_kind or ErrorKind.VALIDATION)

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        return cls(True, data=data)

    @classmethod
    def fail(cls, error: str, error_kind: ErrorKind = ErrorKind.VALIDATION) -> "Result[T]":
        """
        Build a failed Result.

        Args:
            error (str): Message describing the rejected input
            error_kind (ErrorKind, optional): Failure category. Defaults to VALIDATION.

        Returns:
            Result[T]: A failure carrying the message and its category
        """
        return cls(False, error=error, error_kind=error_kind)

    @classmethod
    def invalid_input(cls, error: str) -> "Result[T]":
        """A value was read but breaks a field rule (length, range, pattern)."""
        return cls.fail(error, ErrorKind.VALIDATION)

    @classmethod
    def processing_error(cls, error: str) -> "Result[T]":
        """A cell could not be converted to the type its column needs."""
        return cls.fail(error, ErrorKind.PROCESSING)

    @classmethod
    def missing_headers(cls, error: str) -> "Result[T]":
        return cls.fail(error, ErrorKind.MISSING_HEADERS)

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def unwrap(self, default: Optional[T] = None) -> Optional[T]:
        return self.data if self.success else default

    def and_then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """
        Feed a successful value into the next step.

        A failure short-circuits: ``fn`` is not called and the same message
        and kind are returned, so a coercion error is never overwritten by a
        later validator.

        Args:
            fn (Callable[[T], Result[U]]): Next step of the chain

        Returns:
            Result[U]: The result of ``fn`` or the original failure
        """
        if not self.success:
            return Result.fail(self.error or "", self.error_kind)
        return fn(self.data)  # type: ignore

    def __repr__(self) -> str:
        if self.success:
            return f"Result.ok({self.data!r})"
        return f"Result.fail({self.error!r}, {self.error_kind!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return (self.success, self.data, self.error, self.error_kind) == (
            other.success, other.data, other.error, other.error_kind
        )
