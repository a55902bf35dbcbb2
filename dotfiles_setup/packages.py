from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .lib.osdetect import Platform

MANIFEST_DIR = Path(__file__).resolve().parent / "manifests"


class PackageKind(str, Enum):
    FORMULA = "formula"
    CASK = "cask"
    SYSTEM = "system-package"


@dataclass(frozen=True)
class PackageSpec:
    name: str
    kind: PackageKind


@dataclass(frozen=True)
class InstallMethod:
    run: str
    when: Optional[str] = None
    shell_init: Optional[str] = None


@dataclass(frozen=True)
class ToolSpec:
    """A tool installed outside the platform package manager."""

    name: str
    command: str
    methods: Dict[Platform, List[InstallMethod]] = field(default_factory=dict)

    @property
    def platforms(self) -> frozenset:
        return frozenset(self.methods)


PackageTable = Dict[Platform, List[PackageSpec]]


def load_manifest(path: str | Path) -> Dict[str, Any]:
    """Load a YAML manifest (bundled name or explicit path)."""
    p = Path(path)
    if not p.is_absolute() and not p.exists():
        p = MANIFEST_DIR / p
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


def _platform_key(key: str, source: str) -> Platform:
    try:
        return Platform(str(key).lower())
    except ValueError:
        raise ValueError(f"Unknown platform {key!r} in {source}") from None


def load_package_table(path: str | Path | None = None) -> PackageTable:
    source = str(path or "packages.yaml")
    raw = load_manifest(source)

    table: PackageTable = {}
    for key, groups in raw.items():
        plat = _platform_key(key, source)
        specs: List[PackageSpec] = []
        for kind_name, names in (groups or {}).items():
            try:
                kind = PackageKind(kind_name)
            except ValueError:
                raise ValueError(f"Unknown package kind {kind_name!r} for {plat} in {source}") from None
            specs.extend(PackageSpec(name=str(n), kind=kind) for n in (names or []))
        table[plat] = specs
    return table


def packages_for(platform: Platform, table: PackageTable) -> List[PackageSpec]:
    return list(table.get(platform) or [])


def load_tools(path: str | Path | None = None) -> List[ToolSpec]:
    source = str(path or "tools.yaml")
    raw = load_manifest(source)

    tools: List[ToolSpec] = []
    for name, entry in raw.items():
        entry = entry or {}
        methods: Dict[Platform, List[InstallMethod]] = {}
        for key, items in (entry.get("platforms") or {}).items():
            plat = _platform_key(key, source)
            methods[plat] = [
                InstallMethod(
                    run=str(item["run"]).strip(),
                    when=item.get("when"),
                    shell_init=item.get("shell_init"),
                )
                for item in (items or [])
            ]
        tools.append(ToolSpec(name=str(name), command=str(entry.get("command") or name), methods=methods))
    return tools
