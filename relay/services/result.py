from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

GENERATION_ERROR = "generation_error"
GENERATION_EMPTY = "generation_empty"
DELIVERY_HTTP_ERROR = "delivery_http_error"
DELIVERY_ERROR = "delivery_error"


@dataclass
class Result(Generic[T]):
    """Outcome of a call to an external collaborator (generation or delivery)."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: Optional[T] = None) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown") -> "Result[T]":
        return Result(ok=False, error=error, error_code=code)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
