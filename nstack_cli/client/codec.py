"""
Envelope Codec.

Binary encoding shared by both directions of every call. Values are
dumped through a pydantic TypeAdapter and packed with msgpack, so one
schema per call type describes request and response alike.

Wire types must be built from msgpack-native values (str, int, float,
bool, bytes, None, lists and pydantic models of those). Models become
maps whose keys follow field order, so equal values always encode to
identical bytes.

Responses are framed as a two-element array:

    [0, "message"]   Left: the server reported an error
    [1, value]       Right: the call's return value

decode() and decode_server_return() never raise on bad input; they
return a DecodeError carrying a diagnostic instead.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar, Union

import msgpack
from pydantic import TypeAdapter

T = TypeVar("T")

LEFT_TAG = 0
RIGHT_TAG = 1


@dataclass(frozen=True)
class DecodeError:
    message: str


@dataclass(frozen=True)
class Left:
    """Error message returned by the server."""

    message: str


@dataclass(frozen=True)
class Right(Generic[T]):
    """Value returned by the server."""

    value: T


ServerReturn = Union[Left, Right[T]]

_DECODE_ERRORS = (ValueError, TypeError, msgpack.exceptions.UnpackException)

# Raised by encode() for values the wire format cannot carry, e.g. ints
# outside the 64-bit range.
ENCODE_ERRORS = (OverflowError, TypeError, ValueError)


@lru_cache(maxsize=None)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def _pack(obj: Any) -> bytes:
    return msgpack.packb(obj, use_bin_type=True)


def _unpack(data: bytes) -> Any:
    return msgpack.unpackb(data, raw=False)


def encode(value: Any, type_: Any) -> bytes:
    """
    Serialize value as type_ to msgpack bytes.

    Raises:
        One of ENCODE_ERRORS if value cannot be represented
    """
    return _pack(_adapter(type_).dump_python(value, mode="python"))


def decode(data: bytes, type_: Any) -> Any:
    """
    Deserialize msgpack bytes as type_.

    Returns:
        The decoded value, or DecodeError if data is not a valid encoding
    """
    try:
        return _adapter(type_).validate_python(_unpack(data))
    except _DECODE_ERRORS as e:
        return DecodeError(str(e))


def encode_server_return(outcome: ServerReturn, type_: Any) -> bytes:
    """Frame a server outcome the way the NStack server sends it."""
    if isinstance(outcome, Left):
        return _pack([LEFT_TAG, outcome.message])
    return _pack([RIGHT_TAG, _adapter(type_).dump_python(outcome.value, mode="python")])


def decode_server_return(data: bytes, type_: Any) -> Union[Left, Right, DecodeError]:
    """
    Decode a framed server outcome whose Right side holds type_.

    Returns:
        Left, Right, or DecodeError if the frame or payload is malformed
    """
    try:
        frame = _unpack(data)
    except _DECODE_ERRORS as e:
        return DecodeError(str(e))

    if not isinstance(frame, (list, tuple)) or len(frame) != 2:
        return DecodeError("expected a two-element [tag, payload] array")

    tag, payload = frame
    if tag == LEFT_TAG:
        if not isinstance(payload, str):
            return DecodeError("server error message is not a string")
        return Left(payload)
    if tag == RIGHT_TAG:
        try:
            return Right(_adapter(type_).validate_python(payload))
        except _DECODE_ERRORS as e:
            return DecodeError(str(e))
    return DecodeError(f"unknown result tag: {tag!r}")
