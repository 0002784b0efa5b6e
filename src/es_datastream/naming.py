"""
Data stream name validation.

Mirrors the rules Elasticsearch applies when creating a data stream:
https://www.elastic.co/guide/en/elasticsearch/reference/current/indices-create-data-stream.html
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidDataStreamName

INVALID_START_CHARACTERS = ("-", "_", "+", ".")
INVALID_CHARACTERS = ("\\", "/", "*", "?", '"', "<", ">", "|", " ", ",", "#", ":")
MAX_NAME_BYTES = 255


class ValidationResult(str, Enum):
    VALID = "valid"
    INVALID_START = "invalid_start"
    INVALID_DOTS = "invalid_dots"
    INVALID_CHARACTERS = "invalid_characters"
    INVALID_CASE = "invalid_case"
    TOO_LONG = "too_long"


@dataclass(frozen=True)
class NameCheck:
    """Independent outcome of every naming rule for one candidate."""

    name: str
    lowercase_only: bool
    valid_characters: bool
    start_with_valid_characters: bool
    not_dots: bool
    length_ok: bool

    @property
    def valid(self) -> bool:
        return (
            self.lowercase_only
            and self.valid_characters
            and self.start_with_valid_characters
            and self.not_dots
            and self.length_ok
        )

    @property
    def result(self) -> ValidationResult:
        if self.valid:
            return ValidationResult.VALID
        if not self.start_with_valid_characters:
            # "." and ".." also start with a forbidden character
            if self.not_dots:
                return ValidationResult.INVALID_START
            return ValidationResult.INVALID_DOTS
        if not self.valid_characters:
            return ValidationResult.INVALID_CHARACTERS
        if not self.lowercase_only:
            return ValidationResult.INVALID_CASE
        return ValidationResult.TOO_LONG


def check_name(name: str) -> NameCheck:
    return NameCheck(
        name=name,
        lowercase_only=name.lower() == name,
        valid_characters=not any(c in name for c in INVALID_CHARACTERS),
        start_with_valid_characters=not name.startswith(INVALID_START_CHARACTERS),
        not_dots=name not in (".", ".."),
        length_ok=len(name.encode("utf-8")) <= MAX_NAME_BYTES,
    )


def validate(name: str) -> ValidationResult:
    return check_name(name).result


def describe(name: str, result: ValidationResult) -> str | None:
    """Human readable diagnostic for a failed check, None when valid."""
    if result is ValidationResult.VALID:
        return None
    if result is ValidationResult.INVALID_START:
        return (
            f"'data_stream_name' must not start with "
            f"{','.join(INVALID_START_CHARACTERS)}: <{name}>"
        )
    if result is ValidationResult.INVALID_DOTS:
        return f"'data_stream_name' must not be . or ..: <{name}>"
    if result is ValidationResult.INVALID_CHARACTERS:
        return (
            f"'data_stream_name' must not contain invalid characters "
            f"{','.join(INVALID_CHARACTERS)}: <{name}>"
        )
    if result is ValidationResult.INVALID_CASE:
        return f"'data_stream_name' must be lowercase only: <{name}>"
    return f"'data_stream_name' must not be longer than {MAX_NAME_BYTES} bytes: <{name}>"


def ensure_valid_name(name: str) -> str:
    """Return ``name`` unchanged or raise InvalidDataStreamName."""
    result = validate(name)
    if result is not ValidationResult.VALID:
        raise InvalidDataStreamName(name, describe(name, result))
    return name
