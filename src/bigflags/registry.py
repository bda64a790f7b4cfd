"""
bigflags.registry.

Build the immutable name/bit-position table behind a flag-set type.

Contract
--------
- Accepts raw or normalized declarations (see `bigflags.specs`) and produces a
  `FlagRegistry`.
- Bit positions follow declaration order of primitives only. The first
  primitive is the "no flags set" sentinel and maps to value 0; the n-th
  primitive after it owns bit ``n - 1``. Aliases take a declaration slot but
  no bit.
- A registry is never mutated after `build_registry` returns. `registry_for`
  builds each distinct declaration set at most once per process.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from .errors import (
    raise_cyclic_alias,
    raise_duplicate_name,
    raise_invalid_declaration,
    raise_undeclared_alias_reference,
    raise_unknown_flag_name,
)
from .specs import FlagDeclaration, FlagKind, normalize_declarations

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_TYPE_NAME = "FlagSet"


# -----------------------------------------------------------------------------
# Public registry object
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FlagRegistry:
    """Ordered, read-only table of declared flags for one flag-set type.

    Attributes:
        type_name: Name of the flag-set type, used in messages.
        declarations: All declarations in declaration order.
        positions: Bit offset per non-sentinel primitive name.
        sentinel: Name of the primitive that stands for "no flags set".
        by_folded_name: Case-folded name to declaration.
    """

    type_name: str
    declarations: tuple[FlagDeclaration, ...]
    positions: Mapping[str, int]
    sentinel: str
    by_folded_name: Mapping[str, FlagDeclaration] = field(repr=False)

    # -- listing ---------------------------------------------------------------

    def names(self) -> tuple[str, ...]:
        """All declared names (primitives and aliases) in declaration order."""
        return tuple(d.name for d in self.declarations)

    def primitive_names(self) -> tuple[str, ...]:
        """Primitive names in declaration order, sentinel first."""
        return tuple(d.name for d in self.declarations if not d.is_alias)

    def alias_names(self) -> tuple[str, ...]:
        """Alias names in declaration order."""
        return tuple(d.name for d in self.declarations if d.is_alias)

    @property
    def width(self) -> int:
        """Number of bit positions owned by primitives."""
        return len(self.positions)

    @property
    def full_mask(self) -> int:
        """Value with every primitive bit set."""
        return (1 << self.width) - 1

    # -- lookup ----------------------------------------------------------------

    def lookup(self, name: str) -> FlagDeclaration | None:
        """Return the declaration for `name` (case-insensitive), if any."""
        return self.by_folded_name.get(name.casefold())

    def bit_position_of(self, name: str) -> int | None:
        """Return the bit offset of a primitive flag.

        Args:
            name: Flag name (case-insensitive).

        Returns:
            The bit offset, or None for aliases, the sentinel and unknown names.
        """
        decl = self.lookup(name)
        if decl is None or decl.is_alias:
            return None
        return self.positions.get(decl.name)

    def value_of(self, name: str) -> int:
        """Return the integer value of a primitive flag.

        Args:
            name: Primitive flag name (case-insensitive).

        Returns:
            ``1 << bit_position_of(name)``, or 0 for the sentinel.

        Raises:
            UnknownFlagNameError: If `name` is unknown or denotes an alias.
        """
        decl = self.lookup(name)
        if decl is None:
            raise_unknown_flag_name(type_name=self.type_name, name=name)
        if decl.is_alias:
            raise_unknown_flag_name(
                type_name=self.type_name,
                name=name,
                detail=f"{decl.name!r} is an alias, not a primitive flag",
            )
        if decl.name == self.sentinel:
            return 0
        return 1 << self.positions[decl.name]

    def resolve_value(self, name: str, *, _chain: tuple[str, ...] = ()) -> int:
        """Evaluate any declared name (primitive or alias) to its integer value.

        Aliases are evaluated from their operands on every call.

        Args:
            name: Flag name (case-insensitive).

        Returns:
            The OR of the primitive bits the name stands for.

        Raises:
            UnknownFlagNameError: If `name` is not declared.
            CyclicAliasError: If alias evaluation revisits a name in its chain.
        """
        decl = self.lookup(name)
        if decl is None:
            raise_unknown_flag_name(type_name=self.type_name, name=name)
        if not decl.is_alias:
            return self.value_of(decl.name)
        if decl.name in _chain:
            raise_cyclic_alias(type_name=self.type_name, chain=(*_chain, decl.name))

        chain = (*_chain, decl.name)
        value = 0
        for operand in decl.alias_of:
            value |= self.resolve_value(operand, _chain=chain)
        return value

    def primitive_values(self) -> tuple[tuple[str, int], ...]:
        """(name, value) for every primitive in declaration order, sentinel first."""
        return tuple((n, self.value_of(n)) for n in self.primitive_names())


# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------


def build_registry(
    declarations: Iterable[object],
    *,
    type_name: str = DEFAULT_TYPE_NAME,
) -> FlagRegistry:
    """Validate declarations and assign bit positions.

    Args:
        declarations: Raw or normalized declarations, in declaration order.
        type_name: Flag-set type name for messages.

    Returns:
        A fully validated `FlagRegistry`.

    Raises:
        DuplicateNameError: If two names collide case-insensitively.
        AliasReferencesUndeclaredFlagError: If an alias references a name not
            declared before it.
        CyclicAliasError: If an alias cannot be evaluated without recursion.
        InvalidDeclarationError: If the declaration list is malformed or has no
            leading primitive to act as the sentinel.
    """
    decls = normalize_declarations(declarations)

    by_folded: dict[str, FlagDeclaration] = {}
    positions: dict[str, int] = {}
    sentinel: str | None = None

    for decl in decls:
        folded = decl.name.casefold()
        if folded in by_folded:
            raise_duplicate_name(
                type_name=type_name, name=decl.name, existing=by_folded[folded].name
            )

        if decl.kind is FlagKind.ALIAS:
            missing = [op for op in decl.alias_of if op.casefold() not in by_folded]
            if missing:
                raise_undeclared_alias_reference(
                    type_name=type_name, alias=decl.name, missing=missing
                )
        elif sentinel is None:
            sentinel = decl.name
        else:
            positions[decl.name] = len(positions)

        by_folded[folded] = decl

    if sentinel is None:
        raise_invalid_declaration(
            type_name=type_name,
            detail="a leading primitive flag (the 'no flags set' sentinel) is required",
        )

    registry = FlagRegistry(
        type_name=type_name,
        declarations=decls,
        positions=MappingProxyType(positions),
        sentinel=sentinel,
        by_folded_name=MappingProxyType(by_folded),
    )

    # Evaluate every alias once so a bad registry never escapes.
    for name in registry.alias_names():
        registry.resolve_value(name)

    logger.debug(
        "Built %s registry: %d primitive(s), %d alias(es), sentinel=%r",
        type_name,
        len(positions) + 1,
        len(decls) - len(positions) - 1,
        sentinel,
    )
    return registry


# -----------------------------------------------------------------------------
# Lazy-once cache
# -----------------------------------------------------------------------------

_REGISTRY_LOCK = threading.Lock()
_REGISTRIES: dict[tuple[str, tuple[FlagDeclaration, ...]], FlagRegistry] = {}


def registry_for(
    declarations: Iterable[object],
    *,
    type_name: str = DEFAULT_TYPE_NAME,
) -> FlagRegistry:
    """Return the registry for a declaration set, building it at most once.

    Args:
        declarations: Raw or normalized declarations.
        type_name: Flag-set type name.

    Returns:
        The cached `FlagRegistry` for these declarations.
    """
    key = (type_name, normalize_declarations(declarations))
    with _REGISTRY_LOCK:
        cached = _REGISTRIES.get(key)
        if cached is not None:
            logger.debug("Reusing cached %s registry", type_name)
            return cached
        registry = build_registry(key[1], type_name=type_name)
        _REGISTRIES[key] = registry
        return registry
