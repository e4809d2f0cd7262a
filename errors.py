"""Result values and error types shared by the gateway and the client."""
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

GENERIC_INTERNAL_ERROR = "An internal server error occurred."
INVALID_RESPONSE_ERROR = "The AI returned an invalid response format. Please try again."


class LocalValidationError(ValueError):
    """Input rejected on the client before any network call."""

    def __init__(self, message: str, fields=()):
        super().__init__(message)
        self.message = message
        self.fields = tuple(fields)


@dataclass(frozen=True)
class GatewayError:
    status_code: int
    message: str

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    def to_body(self) -> dict:
        return {"error": self.message}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: GatewayError


Result = Union[Ok[Any], Err]


def invalid_request(message: str) -> Err:
    return Err(GatewayError(400, message))


def internal_error(message: str = GENERIC_INTERNAL_ERROR) -> Err:
    return Err(GatewayError(500, message))
