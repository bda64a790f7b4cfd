"""
bigflags.config.

Load flag-set declarations from YAML or JSON files.

File layout::

    name: Permissions
    flags:
      - None
      - Read
      - Write
      - ReadWrite: Read | Write

`flags` accepts every declaration form understood by
`bigflags.specs.normalize_declarations`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import yaml

from .errors import raise_invalid_declaration
from .flagset import define_flag_set
from .specs import FlagDeclaration, normalize_declarations

if TYPE_CHECKING:
    from .flagset import FlagSet

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml", ".json"})


@dataclass(frozen=True, slots=True)
class DeclarationFile:
    """Normalized contents of a declaration file."""

    name: str
    declarations: tuple[FlagDeclaration, ...]
    source: Path


def _read_config_file(p: Path) -> Any:
    raw = p.read_text(encoding="utf-8")
    if not raw.strip():
        return {}
    try:
        if p.suffix.lower() == ".json":
            return json.loads(raw)
        return yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise_invalid_declaration(detail=f"{p.name} is not valid: {exc}")


def load_declarations(path: str | Path) -> DeclarationFile:
    """
    Read and normalize a declaration file.

    Args:
        path: Path to a ``.yaml``, ``.yml`` or ``.json`` file.

    Returns:
        DeclarationFile with the type name and normalized declarations.

    Raises:
        InvalidDeclarationError: If the suffix is unsupported or the content
            does not have the expected layout.
        OSError: If the file cannot be read.
    """
    p = Path(path)
    if p.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise_invalid_declaration(
            detail=(
                f"unsupported file type {p.suffix!r}; "
                f"use one of {sorted(SUPPORTED_SUFFIXES)}"
            )
        )

    data = _read_config_file(p)
    if not isinstance(data, dict):
        raise_invalid_declaration(detail=f"{p.name} must contain a mapping")

    missing = [k for k in ("name", "flags") if k not in data]
    if missing:
        raise_invalid_declaration(detail=f"{p.name} is missing key(s): {missing}")

    name = data["name"]
    if not isinstance(name, str) or not name.strip().isidentifier():
        raise_invalid_declaration(detail=f"{p.name}: name must be an identifier")

    flags = data["flags"]
    if not isinstance(flags, list):
        raise_invalid_declaration(detail=f"{p.name}: flags must be a list")

    decls = normalize_declarations(flags)
    logger.debug("Loaded %d declaration(s) for %s from %s", len(decls), name, p)
    return DeclarationFile(name=name.strip(), declarations=decls, source=p)


def load_flag_set(path: str | Path) -> type[FlagSet]:
    """
    Load a declaration file and define its flag-set type in one call.

    Args:
        path: Path to a declaration file.

    Returns:
        The `FlagSet` subclass described by the file.
    """
    spec = load_declarations(path)
    return define_flag_set(spec.name, spec.declarations)
