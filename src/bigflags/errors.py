"""
Core error types and helpers for bigflags.

Design intent:
- Every failure is catchable both as a bigflags error and as the matching
  built-in (ValueError/KeyError), so callers need not import this module.
- Provide machine-readable error codes via a single lightweight base error.

Contract:
- Registry-build errors (duplicate names, undeclared alias references, alias
  cycles, malformed declarations) are fatal for the flag-set type being built.
- UnknownFlagNameError signals a programmer error (a name that was never
  declared, or an alias used where a primitive is required).
- ParseError is recoverable. `FlagSet.try_parse` returns it inside a result
  instead of raising it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence


class ErrorCode(StrEnum):
    """Machine-readable classification for bigflags failures."""

    DUPLICATE_NAME = "duplicate_name"
    UNDECLARED_ALIAS_REFERENCE = "undeclared_alias_reference"
    CYCLIC_ALIAS = "cyclic_alias"
    INVALID_DECLARATION = "invalid_declaration"
    UNKNOWN_FLAG_NAME = "unknown_flag_name"
    PARSE_FAILED = "parse_failed"
    INVALID_VALUE = "invalid_value"
    INVALID_MASK = "invalid_mask"


class BigFlagsError(Exception):
    """Lightweight, structured error carrying an ErrorCode."""

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        """
        Initialize BigFlagsError.

        Args:
            message: Human-readable error message.
            code: Optional ErrorCode classifying the error.
        """
        super().__init__(message)
        self.code: ErrorCode | None = code


class DuplicateNameError(BigFlagsError, ValueError):
    """Raised when two declarations share a name (case-insensitive)."""


class AliasReferencesUndeclaredFlagError(BigFlagsError, ValueError):
    """Raised when an alias names a flag not declared before it."""


class CyclicAliasError(BigFlagsError, ValueError):
    """Raised when alias resolution revisits a name already being resolved."""


class InvalidDeclarationError(BigFlagsError, ValueError):
    """Raised when a declaration list is malformed."""


class UnknownFlagNameError(BigFlagsError, KeyError):
    """Raised when code references a flag name that is not usable there."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0]) if self.args else ""


class ParseError(BigFlagsError, ValueError):
    """Describes a failed name-list parse.

    Attributes:
        text: The input that failed to parse.
        token: The first segment that matched no declared name.
    """

    def __init__(self, message: str, *, text: str, token: str) -> None:
        """
        Initialize ParseError.

        Args:
            message: Human-readable error message.
            text: The full input string.
            token: The offending (trimmed) segment.
        """
        super().__init__(message, code=ErrorCode.PARSE_FAILED)
        self.text: str = text
        self.token: str = token


# -----------------------------------------------------------------------------
# Standardized message prefixes
# -----------------------------------------------------------------------------

_INVALID_DECL_PREFIX: Final[str] = "Invalid bigflags declaration."
_UNKNOWN_NAME_PREFIX: Final[str] = "Unknown bigflags flag name."
_PARSE_PREFIX: Final[str] = "Could not parse bigflags value."


# -----------------------------------------------------------------------------
# Raiser helpers
# -----------------------------------------------------------------------------


def raise_duplicate_name(*, type_name: str, name: str, existing: str) -> None:
    """Raise a standardized duplicate-name error.

    Args:
        type_name: Name of the flag-set type being built.
        name: The colliding declaration name.
        existing: The previously declared name it collides with.

    Raises:
        DuplicateNameError: Always.
    """
    msg = (
        f"{_INVALID_DECL_PREFIX} {type_name}: name {name!r} collides with "
        f"already declared {existing!r} (names are case-insensitive)."
    )
    raise DuplicateNameError(msg, code=ErrorCode.DUPLICATE_NAME)


def raise_undeclared_alias_reference(
    *,
    type_name: str,
    alias: str,
    missing: Sequence[str],
) -> None:
    """Raise a standardized forward/undeclared alias reference error.

    Raises:
        AliasReferencesUndeclaredFlagError: Always.
    """
    msg = (
        f"{_INVALID_DECL_PREFIX} {type_name}: alias {alias!r} references "
        f"undeclared flag(s): {sorted(set(missing))}. Aliases may only "
        "reference earlier declarations."
    )
    raise AliasReferencesUndeclaredFlagError(
        msg, code=ErrorCode.UNDECLARED_ALIAS_REFERENCE
    )


def raise_cyclic_alias(*, type_name: str, chain: Sequence[str]) -> None:
    """Raise a standardized alias cycle error.

    Args:
        type_name: Name of the flag-set type.
        chain: Resolution chain, ending with the revisited name.

    Raises:
        CyclicAliasError: Always.
    """
    msg = f"{_INVALID_DECL_PREFIX} {type_name}: alias cycle {' -> '.join(chain)}."
    raise CyclicAliasError(msg, code=ErrorCode.CYCLIC_ALIAS)


def raise_invalid_declaration(
    *,
    detail: str,
    type_name: str | None = None,
) -> None:
    """Raise a standardized malformed-declaration error.

    Raises:
        InvalidDeclarationError: Always.
    """
    parts: list[str] = [_INVALID_DECL_PREFIX]
    if type_name:
        parts.append(f"{type_name}:")
    parts.append(f"Detail: {detail}")
    msg = " ".join(parts)
    raise InvalidDeclarationError(msg, code=ErrorCode.INVALID_DECLARATION)


def raise_unknown_flag_name(
    *,
    type_name: str,
    name: str,
    detail: str | None = None,
) -> None:
    """Raise a standardized unknown-name error.

    Raises:
        UnknownFlagNameError: Always.
    """
    msg = f"{_UNKNOWN_NAME_PREFIX} {type_name} has no flag {name!r}."
    if detail:
        msg = f"{msg} Detail: {detail}"
    raise UnknownFlagNameError(msg, code=ErrorCode.UNKNOWN_FLAG_NAME)


def raise_invalid_value(*, type_name: str, value: object, detail: str) -> None:
    """Raise a standardized raw-value error.

    Raises:
        ValueError: Always, chained from BigFlagsError(code=INVALID_VALUE).
    """
    msg = f"{type_name} cannot hold {value!r}. Detail: {detail}"
    raise ValueError(msg) from BigFlagsError(msg, code=ErrorCode.INVALID_VALUE)


def raise_mask_shape_error(*, type_name: str, expected: str, got: object) -> None:
    """Raise a standardized membership-mask shape error.

    Raises:
        ValueError: Always, chained from BigFlagsError(code=INVALID_MASK).
    """
    msg = f"{type_name} mask has an invalid shape. Expected {expected}. Got: {got!r}."
    raise ValueError(msg) from BigFlagsError(msg, code=ErrorCode.INVALID_MASK)


def make_parse_error(*, type_name: str, text: str, token: str) -> ParseError:
    """Build (without raising) a standardized ParseError.

    Args:
        type_name: Name of the flag-set type.
        text: The full input string.
        token: The offending segment.

    Returns:
        ParseError describing the first unknown segment.
    """
    msg = f"{_PARSE_PREFIX} {type_name} has no flag named {token!r} (input {text!r})."
    return ParseError(msg, text=text, token=token)
