"""
bigflags.flagset.

The `FlagSet` value type: an immutable, arbitrary-width flags enumeration.

Contract
--------
- `define_flag_set` builds (or reuses) a `FlagRegistry` and returns a new
  `FlagSet` subclass bound to it. Values of that subclass wrap a plain Python
  int, so there is no upper bound on the number of flags.
- Values never change after construction; every operator returns a new value.
- Equality, hashing and ordering use the underlying integer. Ordering is
  numeric, not set inclusion.
- The string form lists primitive names in declaration order, joined by
  ``", "``. The zero value prints as the sentinel name. Aliases are accepted by
  the parser and never printed.
"""

from __future__ import annotations

import keyword
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Final, Self

import numpy as np
from numpy.typing import NDArray

from .errors import (
    ParseError,
    make_parse_error,
    raise_invalid_value,
    raise_mask_shape_error,
    raise_unknown_flag_name,
)
from .registry import FlagRegistry, registry_for

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


logger = logging.getLogger(__name__)

BoolArray = NDArray[np.bool_]

SEPARATOR: Final[str] = ", "


# -----------------------------------------------------------------------------
# Parse result
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of `FlagSet.try_parse`.

    Attributes:
        value: Parsed value; the zero value when parsing failed.
        error: The failure, or None on success.
    """

    value: FlagSet
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        """True when parsing succeeded."""
        return self.error is None


# -----------------------------------------------------------------------------
# Alias members
# -----------------------------------------------------------------------------


class _AliasMember:
    """Class attribute that recomputes an alias each time it is read."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __get__(self, instance: object, owner: type[FlagSet]) -> FlagSet:
        return owner.resolve_alias(self.name)


# -----------------------------------------------------------------------------
# Value type
# -----------------------------------------------------------------------------


class FlagSet:
    """Immutable set of named flags backed by an arbitrary-precision int.

    Do not instantiate `FlagSet` itself; create a type with `define_flag_set`.
    """

    __slots__ = ("_value",)

    _registry: ClassVar[FlagRegistry | None] = None

    def __init__(self, value: int = 0) -> None:
        """
        Wrap a raw integer.

        Args:
            value: Non-negative int whose set bits all belong to declared
                primitive flags.

        Raises:
            TypeError: If `value` is not an int, or the type has no registry.
            ValueError: If `value` is negative or sets an undeclared bit.
        """
        registry = type(self).get_registry()
        if isinstance(value, bool) or not isinstance(value, int):
            got = type(value).__name__
            msg = f"{registry.type_name} value must be an int, got {got}"
            raise TypeError(msg)
        if value < 0:
            raise_invalid_value(
                type_name=registry.type_name, value=value, detail="must not be negative"
            )
        if value & ~registry.full_mask:
            raise_invalid_value(
                type_name=registry.type_name,
                value=value,
                detail=f"only the low {registry.width} bit(s) are declared",
            )
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} values are immutable"
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> None:
        msg = f"{type(self).__name__} values are immutable"
        raise AttributeError(msg)

    def __reduce__(self) -> tuple[type[Self], tuple[int]]:
        return (type(self), (self._value,))

    # -- registry access -------------------------------------------------------

    @classmethod
    def get_registry(cls) -> FlagRegistry:
        """Return the registry this type is bound to."""
        registry = cls._registry
        if registry is None:
            msg = f"{cls.__name__} has no flags; create a type with define_flag_set()"
            raise TypeError(msg)
        return registry

    @classmethod
    def names(cls) -> tuple[str, ...]:
        """All declared names, primitives and aliases, in declaration order."""
        return cls.get_registry().names()

    @classmethod
    def values(cls) -> tuple[Self, ...]:
        """Every primitive value in declaration order, starting with zero."""
        return tuple(cls(v) for _, v in cls.get_registry().primitive_values())

    # -- construction ----------------------------------------------------------

    @classmethod
    def zero(cls) -> Self:
        """The value with no flags set."""
        return cls(0)

    @classmethod
    def from_primitive(cls, name: str) -> Self:
        """Return the single-flag value for a primitive name.

        Args:
            name: Primitive flag name (case-insensitive). The sentinel name
                yields the zero value.

        Raises:
            UnknownFlagNameError: If `name` is undeclared or is an alias.
        """
        return cls(cls.get_registry().value_of(name))

    @classmethod
    def resolve_alias(cls, name: str) -> Self:
        """Evaluate an alias to the OR of the flags it names.

        Args:
            name: Alias name (case-insensitive).

        Raises:
            UnknownFlagNameError: If `name` is not a declared alias.
            CyclicAliasError: If evaluation revisits an alias already in the
                resolution chain.
        """
        registry = cls.get_registry()
        decl = registry.lookup(name)
        if decl is None or not decl.is_alias:
            raise_unknown_flag_name(
                type_name=registry.type_name, name=name, detail="not an alias"
            )
        return cls(registry.resolve_value(decl.name))

    @classmethod
    def member(cls, name: str) -> Self:
        """Return the value for any declared name, primitive or alias."""
        return cls(cls.get_registry().resolve_value(name))

    @classmethod
    def from_mask(cls, mask: Iterable[bool] | BoolArray) -> Self:
        """Build a value from a per-primitive membership mask.

        Args:
            mask: One boolean per non-sentinel primitive, in declaration order.

        Returns:
            The value with exactly the masked flags set.
        """
        registry = cls.get_registry()
        if not isinstance(mask, (np.ndarray, list, tuple)):
            mask = list(mask)
        arr = np.asarray(mask, dtype=np.bool_)
        if arr.ndim != 1 or arr.shape[0] != registry.width:
            raise_mask_shape_error(
                type_name=registry.type_name,
                expected=f"({registry.width},)",
                got=arr.shape,
            )
        value = 0
        for bit in np.flatnonzero(arr):
            value |= 1 << int(bit)
        return cls(value)

    # -- parsing ---------------------------------------------------------------

    @classmethod
    def try_parse(cls, text: str | None) -> ParseResult:
        """Parse a comma-separated list of flag names without raising.

        Empty or None input parses to zero. Segments are trimmed and matched
        case-insensitively against primitive and alias names. A single unknown
        segment fails the whole parse.

        Args:
            text: Input such as ``"Two, Five, Nine"``.

        Returns:
            ParseResult holding the value, or zero plus a ParseError.
        """
        registry = cls.get_registry()
        if text is None:
            return ParseResult(cls.zero())
        if not isinstance(text, str):
            err = make_parse_error(
                type_name=registry.type_name, text=repr(text), token=repr(text)
            )
            return ParseResult(cls.zero(), err)
        if not text:
            return ParseResult(cls.zero())

        value = 0
        for segment in text.split(","):
            token = segment.strip()
            if registry.lookup(token) is None:
                err = make_parse_error(
                    type_name=registry.type_name, text=text, token=token
                )
                return ParseResult(cls.zero(), err)
            value |= registry.resolve_value(token)
        return ParseResult(cls(value))

    @classmethod
    def parse(cls, text: str | None) -> Self:
        """Parse like `try_parse`, raising the ParseError on failure.

        Raises:
            ParseError: If any segment is not a declared name.
        """
        result = cls.try_parse(text)
        if result.error is not None:
            raise result.error
        return result.value

    # -- value access ----------------------------------------------------------

    @property
    def value(self) -> int:
        """Underlying integer. Not a stable persisted form; use `to_string`."""
        return self._value

    def has_flag(self, required: FlagSet | str) -> bool:
        """True if every bit set in `required` is also set in this value.

        Args:
            required: A value of the same type, or a declared name.
        """
        req = self._coerce(required)
        if req is None:
            msg = f"cannot test {type(self).__name__} for {required!r}"
            raise TypeError(msg)
        return (self._value & req) == req

    def members(self) -> Iterator[Self]:
        """Yield the set primitive flags in declaration order."""
        cls = type(self)
        for bit in self.get_registry().positions.values():
            if self._value >> bit & 1:
                yield cls(1 << bit)

    def to_string(self) -> str:
        """Names of the set primitive flags, or the sentinel name for zero."""
        registry = self.get_registry()
        if self._value == 0:
            return registry.sentinel
        return SEPARATOR.join(
            name for name, bit in registry.positions.items() if self._value >> bit & 1
        )

    def to_mask(self) -> BoolArray:
        """Per-primitive membership mask (sentinel excluded)."""
        width = self.get_registry().width
        bits = [bool(self._value >> i & 1) for i in range(width)]
        return np.array(bits, dtype=np.bool_)

    def compare(self, other: FlagSet) -> int:
        """Numeric comparison of underlying values: -1, 0 or 1."""
        rhs = self._coerce(other)
        if rhs is None:
            msg = f"cannot compare {type(self).__name__} with {type(other).__name__}"
            raise TypeError(msg)
        return (self._value > rhs) - (self._value < rhs)

    # -- helpers ---------------------------------------------------------------

    def _coerce(self, other: object) -> int | None:
        """Underlying int of a same-type value or a declared name, else None."""
        if isinstance(other, str):
            return self.get_registry().resolve_value(other)
        return self._compatible(other)

    def _compatible(self, other: object) -> int | None:
        # Operators only combine values of the same flag-set type.
        if isinstance(other, FlagSet) and other._registry is self._registry:
            return other._value
        return None

    # -- operators -------------------------------------------------------------

    def __or__(self, other: object) -> Self:
        rhs = self._compatible(other)
        if rhs is None:
            return NotImplemented
        return type(self)(self._value | rhs)

    def __and__(self, other: object) -> Self:
        rhs = self._compatible(other)
        if rhs is None:
            return NotImplemented
        return type(self)(self._value & rhs)

    def __xor__(self, other: object) -> Self:
        rhs = self._compatible(other)
        if rhs is None:
            return NotImplemented
        return type(self)(self._value ^ rhs)

    def __eq__(self, other: object) -> bool:
        rhs = self._compatible(other)
        if rhs is None:
            return NotImplemented
        return self._value == rhs

    def __hash__(self) -> int:
        return hash(self._value)

    def __lt__(self, other: object) -> bool:
        rhs = self._compatible(other)
        return NotImplemented if rhs is None else self._value < rhs

    def __le__(self, other: object) -> bool:
        rhs = self._compatible(other)
        return NotImplemented if rhs is None else self._value <= rhs

    def __gt__(self, other: object) -> bool:
        rhs = self._compatible(other)
        return NotImplemented if rhs is None else self._value > rhs

    def __ge__(self, other: object) -> bool:
        rhs = self._compatible(other)
        return NotImplemented if rhs is None else self._value >= rhs

    def __bool__(self) -> bool:
        return self._value != 0

    def __len__(self) -> int:
        return self._value.bit_count()

    def __iter__(self) -> Iterator[Self]:
        return self.members()

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.to_string()}>"


# -----------------------------------------------------------------------------
# Type factory
# -----------------------------------------------------------------------------


def _can_expose(name: str) -> bool:
    """Whether `name` can become a class attribute without shadowing the API."""
    return (
        name.isidentifier()
        and not keyword.iskeyword(name)
        and not name.startswith("_")
        and not hasattr(FlagSet, name)
    )


def define_flag_set(
    type_name: str,
    declarations: Iterable[Any],
    *,
    module: str | None = None,
) -> type[FlagSet]:
    """Create a `FlagSet` subclass for an ordered declaration list.

    Args:
        type_name: Class name of the new type.
        declarations: Ordered declarations (see `bigflags.specs`). The first
            primitive is the "no flags set" sentinel.
        module: Optional ``__module__`` for the new class.

    Returns:
        The new `FlagSet` subclass. Primitive members are exposed as class
        attributes holding values; alias members as attributes that recompute
        on every access. Names that are not identifiers, are keywords, or would
        shadow the `FlagSet` API are reachable through `member` only.
    """
    registry = registry_for(declarations, type_name=type_name)
    namespace: dict[str, Any] = {"__slots__": (), "_registry": registry}
    if module is not None:
        namespace["__module__"] = module
    cls = type(type_name, (FlagSet,), namespace)

    for decl in registry.declarations:
        if not _can_expose(decl.name):
            logger.debug(
                "%s.%s not exposed as an attribute; use member(%r)",
                type_name,
                decl.name,
                decl.name,
            )
            continue
        if decl.is_alias:
            setattr(cls, decl.name, _AliasMember(decl.name))
        else:
            setattr(cls, decl.name, cls(registry.value_of(decl.name)))
    return cls
