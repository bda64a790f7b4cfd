"""Unit tests for bigflags.registry (pytest).

These tests cover:
- zero-init bit position assignment (sentinel, aliases skipped)
- name listing in declaration order
- case-insensitive lookup and primitive-only position queries
- build-time validation (duplicates, forward alias references, no sentinel)
- alias evaluation and cycle detection
- deterministic, build-once caching in registry_for
"""

from __future__ import annotations

import re
import threading

import pytest

from bigflags.errors import (
    AliasReferencesUndeclaredFlagError,
    CyclicAliasError,
    DuplicateNameError,
    InvalidDeclarationError,
    UnknownFlagNameError,
)
from bigflags.registry import FlagRegistry, build_registry, registry_for
from bigflags.specs import FlagDeclaration, FlagKind


@pytest.fixture
def registry() -> FlagRegistry:
    """Registry with a sentinel, three primitives and two aliases.

    Returns:
        FlagRegistry instance.
    """
    return build_registry(
        [
            "None",
            "One",
            "Two",
            {"OneTwo": "One | Two"},
            "Three",
            {"All": ["OneTwo", "Three"]},
        ],
        type_name="Numbers",
    )


def test_bit_positions_skip_sentinel_and_aliases(registry: FlagRegistry) -> None:
    """Primitives after the sentinel own bits 0, 1, 2 in declaration order."""
    assert registry.sentinel == "None"
    assert dict(registry.positions) == {"One": 0, "Two": 1, "Three": 2}
    assert registry.bit_position_of("One") == 0
    assert registry.bit_position_of("Two") == 1
    assert registry.bit_position_of("Three") == 2
    assert registry.width == 3
    assert registry.full_mask == 0b111


def test_bit_position_absent_for_alias_sentinel_and_unknown(
    registry: FlagRegistry,
) -> None:
    """bit_position_of is only defined for non-sentinel primitives."""
    assert registry.bit_position_of("OneTwo") is None
    assert registry.bit_position_of("None") is None
    assert registry.bit_position_of("Four") is None


def test_names_in_declaration_order(registry: FlagRegistry) -> None:
    """names() lists primitives and aliases in declaration order."""
    assert registry.names() == ("None", "One", "Two", "OneTwo", "Three", "All")
    assert registry.primitive_names() == ("None", "One", "Two", "Three")
    assert registry.alias_names() == ("OneTwo", "All")


def test_lookup_is_case_insensitive(registry: FlagRegistry) -> None:
    """lookup() folds case and returns the canonical declaration."""
    decl = registry.lookup("oNeTwO")
    assert decl is not None
    assert decl.name == "OneTwo"
    assert decl.kind is FlagKind.ALIAS
    assert registry.lookup("missing") is None
    assert registry.bit_position_of("THREE") == 2


def test_value_of_primitives(registry: FlagRegistry) -> None:
    """value_of maps the sentinel to zero and primitives to single bits."""
    assert registry.value_of("None") == 0
    assert registry.value_of("one") == 1
    assert registry.value_of("Three") == 4
    assert registry.primitive_values() == (
        ("None", 0),
        ("One", 1),
        ("Two", 2),
        ("Three", 4),
    )


def test_value_of_rejects_alias_and_unknown(registry: FlagRegistry) -> None:
    """value_of is a primitive-only lookup."""
    with pytest.raises(UnknownFlagNameError, match=r"is an alias"):
        registry.value_of("OneTwo")
    with pytest.raises(UnknownFlagNameError, match=r"has no flag 'Four'"):
        registry.value_of("Four")


def test_resolve_value_evaluates_nested_aliases(registry: FlagRegistry) -> None:
    """Aliases of aliases resolve to the OR of their primitives."""
    assert registry.resolve_value("OneTwo") == 0b011
    assert registry.resolve_value("all") == 0b111
    assert registry.resolve_value("Two") == 0b010


def test_duplicate_names_rejected_case_insensitively() -> None:
    """Two names differing only in case collide."""
    with pytest.raises(DuplicateNameError, match=re.escape("'ONE' collides")):
        build_registry(["None", "One", "ONE"])


def test_duplicate_alias_name_rejected() -> None:
    """An alias may not reuse a primitive name."""
    with pytest.raises(DuplicateNameError):
        build_registry(["None", "One", {"one": "One"}])


def test_forward_alias_reference_rejected() -> None:
    """Aliases may only reference earlier declarations."""
    with pytest.raises(
        AliasReferencesUndeclaredFlagError, match=re.escape("['Two']")
    ):
        build_registry(["None", "One", {"Both": "One | Two"}, "Two"])


def test_self_referencing_alias_rejected() -> None:
    """An alias naming itself is a reference to an undeclared flag."""
    with pytest.raises(AliasReferencesUndeclaredFlagError):
        build_registry(["None", {"Loop": "Loop"}])


def test_alias_operands_match_case_insensitively() -> None:
    """Alias operands are looked up like parse tokens."""
    reg = build_registry(["None", "One", "Two", {"Both": "one | TWO"}])
    assert reg.resolve_value("Both") == 0b11


def test_alias_first_is_rejected() -> None:
    """A leading alias has nothing to reference."""
    with pytest.raises(AliasReferencesUndeclaredFlagError):
        build_registry([{"A": "B"}, "B"])


def test_registry_needs_a_leading_primitive() -> None:
    """A declaration list made only of aliases cannot be built."""
    decl = FlagDeclaration(
        name="Only", index=0, kind=FlagKind.ALIAS, alias_of=("Only",)
    )
    with pytest.raises(AliasReferencesUndeclaredFlagError):
        build_registry([decl])


def test_sentinel_only_registry() -> None:
    """A single primitive yields an empty-width registry."""
    reg = build_registry(["Nothing"])
    assert reg.sentinel == "Nothing"
    assert reg.width == 0
    assert reg.full_mask == 0


def test_cycle_detected_during_resolution() -> None:
    """Alias cycles are reported with their resolution chain."""
    # Forward references cannot be declared, so craft a cyclic table directly.
    reg = build_registry(["None", "One", {"A": "One"}, {"B": "A"}])
    assert reg.resolve_value("B") == 1
    cyclic = dict(reg.by_folded_name)
    cyclic["a"] = FlagDeclaration(
        name="A", index=2, kind=FlagKind.ALIAS, alias_of=("B",)
    )
    broken = FlagRegistry(
        type_name="Broken",
        declarations=reg.declarations,
        positions=reg.positions,
        sentinel=reg.sentinel,
        by_folded_name=cyclic,
    )
    with pytest.raises(CyclicAliasError, match=re.escape("B -> A -> B")):
        broken.resolve_value("B")


def test_build_is_deterministic() -> None:
    """Same declarations in the same order give the same assignment."""
    decls = ["Zero", "A", "B", {"AB": "A | B"}, "C"]
    first = build_registry(decls, type_name="Det")
    second = build_registry(decls, type_name="Det")
    assert first == second
    assert dict(first.positions) == {"A": 0, "B": 1, "C": 2}


def test_registry_for_builds_once() -> None:
    """registry_for returns the same registry for the same declarations."""
    decls = ["Zero", "Alpha", "Beta"]
    first = registry_for(decls, type_name="CachedOnce")
    second = registry_for(list(decls), type_name="CachedOnce")
    assert first is second
    assert registry_for(decls, type_name="CachedOther") is not first


def test_registry_for_is_safe_under_concurrent_first_use() -> None:
    """Concurrent first use still yields a single registry."""
    decls = ["Zero", *(f"F{i}" for i in range(200))]
    results: list[FlagRegistry] = []

    def worker() -> None:
        results.append(registry_for(decls, type_name="Concurrent"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert all(r is results[0] for r in results)
    assert results[0].bit_position_of("F199") == 199


def test_failed_build_is_not_cached() -> None:
    """A failing declaration set raises on every attempt."""
    decls = ["None", "X", "x"]
    for _ in range(2):
        with pytest.raises(DuplicateNameError):
            registry_for(decls, type_name="NeverBuilt")


def test_invalid_declaration_propagates_from_build() -> None:
    """Shape errors from normalization surface from build_registry."""
    with pytest.raises(InvalidDeclarationError):
        build_registry([])
