"""bigflags.

Flags enumerations with an unbounded number of named flags.

Public API (v1)
--------------
Primary user entrypoints:
- `define_flag_set`: Build a `FlagSet` type from an ordered declaration list.
- `load_flag_set`: Same, from a YAML/JSON declaration file.
- `parse_flags`: Parse a name-list string for a given type, raising on error.

Core data structures:
- `FlagSet` (and the types created from it)
- `FlagRegistry`
- `FlagDeclaration`
- `ParseResult`

Design guarantees:
- Declaration order fixes bit positions; the string form (flag names) is the
  only stable persisted representation.
- Registries are built once and are read-only afterwards.
- Values are immutable and safe to share between threads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import (
    SUPPORTED_SUFFIXES,
    DeclarationFile,
    load_declarations,
    load_flag_set,
)
from .converter import FlagSetConverter
from .errors import (
    AliasReferencesUndeclaredFlagError,
    BigFlagsError,
    CyclicAliasError,
    DuplicateNameError,
    ErrorCode,
    InvalidDeclarationError,
    ParseError,
    UnknownFlagNameError,
)
from .flagset import SEPARATOR, FlagSet, ParseResult, define_flag_set
from .registry import FlagRegistry, build_registry, registry_for
from .specs import FlagDeclaration, FlagKind, normalize_declarations

if TYPE_CHECKING:
    from typing import TypeVar

    _F = TypeVar("_F", bound=FlagSet)

# -----------------------------------------------------------------------------
# Versioning & capability metadata
# -----------------------------------------------------------------------------

__version__ = "0.1.0"

SUPPORTED_DECLARATION_FILES: tuple[str, ...] = tuple(  # noqa: RUF067
    sorted(SUPPORTED_SUFFIXES)
)

# -----------------------------------------------------------------------------
# High-level public façade
# -----------------------------------------------------------------------------


def parse_flags(flag_type: type[_F], text: str | None) -> _F:  # noqa: RUF067
    """
    Parse a name-list string into a value of `flag_type`.

    This is the raising counterpart of `FlagSet.try_parse`, for callers that
    treat malformed input as an error.

    Args:
        flag_type: A type created by `define_flag_set`.
        text: Comma-separated flag names (case-insensitive).

    Returns:
        The parsed value.
    """
    return flag_type.parse(text)


# -----------------------------------------------------------------------------
# Public export surface
# -----------------------------------------------------------------------------

__all__ = [
    "SEPARATOR",
    "SUPPORTED_DECLARATION_FILES",
    "AliasReferencesUndeclaredFlagError",
    "BigFlagsError",
    "CyclicAliasError",
    "DeclarationFile",
    "DuplicateNameError",
    "ErrorCode",
    "FlagDeclaration",
    "FlagKind",
    "FlagRegistry",
    "FlagSet",
    "FlagSetConverter",
    "InvalidDeclarationError",
    "ParseError",
    "ParseResult",
    "UnknownFlagNameError",
    "__version__",
    "build_registry",
    "define_flag_set",
    "load_declarations",
    "load_flag_set",
    "normalize_declarations",
    "parse_flags",
    "registry_for",
]
