"""bigflags.specs.

Flag declaration models and normalization utilities for bigflags.

Design goals
------------
- Declarations are plain, YAML/JSON-friendly data; no reflection over class
  attributes is needed to discover flags.
- Normalization only checks the *shape* of each declaration. Cross-declaration
  rules (unique names, no forward alias references) belong to
  `bigflags.registry.build_registry`.

Accepted declaration forms
--------------------------
1) "Name"
   - A primitive flag.

2) {"Name": "A | B"} or {"Name": ["A", "B"]}
   - An alias flag: the bitwise OR of earlier declarations.

3) {"name": "Name"} / {"name": "Name", "alias": "A | B"}
   - Explicit mapping form, as produced by most config files.

4) ("Name", None) / ("Name", "A | B")
   - Tuple form for Python callers.

Alias expressions join declared flag names with `|`; every operand is taken
literally after trimming. Names that themselves contain `|` can still be
referenced through the list form.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

from .errors import raise_invalid_declaration

# -----------------------------------------------------------------------------
# Normalized declaration representation (registry-facing)
# -----------------------------------------------------------------------------


class FlagKind(StrEnum):
    """Whether a declaration owns a bit position."""

    PRIMITIVE = "primitive"
    ALIAS = "alias"


@dataclass(frozen=True, slots=True)
class FlagDeclaration:
    """One named flag, in declaration order.

    Attributes:
        name: Canonical (as declared) flag name.
        index: 0-based declaration index, counting primitives and aliases.
        kind: Primitive or alias.
        alias_of: Names OR-ed together by an alias; empty for primitives.
        expression: Alias expression text as written, if any.
    """

    name: str
    index: int
    kind: FlagKind = FlagKind.PRIMITIVE
    alias_of: tuple[str, ...] = ()
    expression: str | None = None

    @property
    def is_alias(self) -> bool:
        """True for alias declarations."""
        return self.kind is FlagKind.ALIAS


# -----------------------------------------------------------------------------
# Alias expression helpers
# -----------------------------------------------------------------------------


def parse_alias_expression(expr: str) -> tuple[str, ...]:
    """Return the flag names OR-ed together by an alias expression.

    Operands are split on ``|`` and trimmed, so any declarable name (including
    ``None``, keywords and names such as ``has-dash``) can be referenced.

    Args:
        expr: Expression string such as ``"One | Two"``.

    Returns:
        Unique operand names in first-seen order.
    """
    operands = [
        _ensure_name(part, where=f"alias expression {expr!r} operand {i}")
        for i, part in enumerate(expr.split("|"))
    ]
    return tuple(dict.fromkeys(operands))


# -----------------------------------------------------------------------------
# Field validators
# -----------------------------------------------------------------------------


def _ensure_name(x: object, *, where: str) -> str:
    """
    Ensure x is a usable flag name.

    Args:
        x: Input value.
        where: Location for error messages.

    Returns:
        Stripped name.
    """
    if not isinstance(x, str) or not x.strip():
        raise_invalid_declaration(detail=f"{where} must be a non-empty string")
    name = x.strip()
    # Commas separate names in the string form.
    if "," in name:
        raise_invalid_declaration(detail=f"{where}={name!r} must not contain ','")
    return name


def _ensure_alias_operands(x: object, *, name: str) -> tuple[tuple[str, ...], str]:
    """
    Normalize an alias body given as an expression or a list of names.

    Args:
        x: Expression string or list/tuple of names.
        name: Alias name for error messages.

    Returns:
        Tuple of (operand names, expression text).
    """
    if isinstance(x, str):
        if not x.strip():
            raise_invalid_declaration(detail=f"alias {name!r} has an empty expression")
        return parse_alias_expression(x), x.strip()
    if isinstance(x, (list, tuple)):
        if not x:
            raise_invalid_declaration(
                detail=f"alias {name!r} must name at least one flag"
            )
        operands = tuple(
            dict.fromkeys(
                _ensure_name(v, where=f"alias {name!r}[{i}]") for i, v in enumerate(x)
            )
        )
        return operands, " | ".join(operands)
    raise_invalid_declaration(
        detail=f"alias {name!r} must be an expression string or a list of names"
    )
    raise AssertionError("unreachable")  # pragma: no cover


def _split_item(item: object, *, idx: int) -> tuple[str, Any]:
    """Return ``(name, alias_body_or_None)`` for one raw declaration."""
    where = f"declarations[{idx}]"
    if isinstance(item, str):
        return _ensure_name(item, where=where), None
    if isinstance(item, tuple):
        if len(item) != 2:  # noqa: PLR2004
            raise_invalid_declaration(detail=f"{where} tuple must be (name, alias)")
        return _ensure_name(item[0], where=f"{where}[0]"), item[1]
    if isinstance(item, dict):
        if "name" in item:
            unknown = sorted(set(item) - {"name", "alias"})
            if unknown:
                raise_invalid_declaration(
                    detail=f"{where} has unknown key(s): {unknown}"
                )
            return _ensure_name(item["name"], where=f"{where}.name"), item.get("alias")
        if len(item) != 1:
            raise_invalid_declaration(
                detail=f"{where} alias mapping must have exactly one key"
            )
        ((key, body),) = item.items()
        if body is None:
            raise_invalid_declaration(detail=f"{where} alias {key!r} has no body")
        return _ensure_name(key, where=where), body
    raise_invalid_declaration(
        detail=f"{where} must be a name, a mapping or a (name, alias) tuple"
    )
    raise AssertionError("unreachable")  # pragma: no cover


# -----------------------------------------------------------------------------
# Public normalization entrypoint
# -----------------------------------------------------------------------------


def normalize_declarations(
    declarations: Iterable[object] | None,
) -> tuple[FlagDeclaration, ...]:
    """
    Normalize raw declarations into indexed `FlagDeclaration` records.

    Args:
        declarations: Ordered raw declarations (see module docstring).

    Returns:
        Declarations in input order with their declaration index assigned.
    """
    if declarations is None:
        raise_invalid_declaration(detail="a declaration list is required")
    if isinstance(declarations, (str, bytes, dict)):
        raise_invalid_declaration(detail="declarations must be a list")

    out: list[FlagDeclaration] = []
    for idx, item in enumerate(declarations):
        if isinstance(item, FlagDeclaration):
            if item.is_alias and not item.alias_of:
                raise_invalid_declaration(
                    detail=f"alias {item.name!r} must name at least one flag"
                )
            out.append(
                FlagDeclaration(
                    name=_ensure_name(item.name, where=f"declarations[{idx}]"),
                    index=idx,
                    kind=item.kind,
                    alias_of=item.alias_of,
                    expression=item.expression,
                )
            )
            continue

        name, body = _split_item(item, idx=idx)
        if body is None:
            out.append(FlagDeclaration(name=name, index=idx))
            continue

        operands, expression = _ensure_alias_operands(body, name=name)
        out.append(
            FlagDeclaration(
                name=name,
                index=idx,
                kind=FlagKind.ALIAS,
                alias_of=operands,
                expression=expression,
            )
        )

    if not out:
        raise_invalid_declaration(detail="declarations must not be empty")
    return tuple(out)
