"""
Call Results.

Every remote call produces exactly one of three outcomes:

    Success(value)      the server ran the call and returned a value
    ClientError(msg)    the call failed on this side: missing credentials,
                        an HTTP/TLS fault, or an undecodable response
    ServerError(msg)    the server ran the call and reported a failure

Callers never see exceptions from a call; they branch on these types.
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")

SERVER_NAME = "NStack"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class ClientError:
    message: str


@dataclass(frozen=True)
class ServerError:
    message: str


Result = Union[Success[T], ClientError, ServerError]


def format_result(result: Result[T], formatter: Callable[[T], str]) -> str:
    """
    Render a result for the terminal.

    The formatter is only applied to Success. Errors are rendered with a
    fixed prefix and their message verbatim.
    """
    if isinstance(result, Success):
        return formatter(result.value)
    if isinstance(result, ClientError):
        return (
            f"There was an error communicating with the {SERVER_NAME} server:\n\n"
            f"    Error: {result.message}"
        )
    return (
        f"An error was returned from the {SERVER_NAME} Server:\n\n"
        f"    Error: {result.message}"
    )
