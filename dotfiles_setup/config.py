from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_CONFIG_PATH = "~/.config/dotfiles-setup/config.yaml"


@dataclass(frozen=True)
class SetupConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _section(self, name: str) -> Dict[str, Any]:
        return self.raw.get(name) or {}

    @property
    def dotfiles_repo(self) -> str:
        return str(self._section("dotfiles").get("repo") or "https://github.com/c-o-l-i-n/dotfiles")

    @property
    def dotfiles_dir(self) -> str:
        return str(self._section("dotfiles").get("dir") or "~/dotfiles")

    @property
    def dev_dir(self) -> str:
        return str(self.raw.get("dev_dir") or "~/dev")

    @property
    def wallpaper(self) -> str:
        return str(self.raw.get("wallpaper") or f"{self.dotfiles_dir}/wallpapers/eclipse.jpg")

    @property
    def applications_dir(self) -> str:
        return str(self._section("paths").get("applications") or "/Applications")

    @property
    def icons_dir(self) -> str:
        return str(self._section("paths").get("icons") or "/usr/share/icons")

    @property
    def extra_path(self) -> List[str]:
        value = self._section("paths").get("extra_path")
        if value is None:
            return ["~/.local/bin", "~/.local/share/mise/shims", "/opt/homebrew/bin"]
        return [str(v) for v in value]

    @property
    def packages_manifest(self) -> Optional[str]:
        value = self._section("manifests").get("packages")
        return str(value) if value else None

    @property
    def tools_manifest(self) -> Optional[str]:
        value = self._section("manifests").get("tools")
        return str(value) if value else None

    @property
    def simple_bar_repo(self) -> str:
        return str(self._section("simple_bar").get("repo") or "https://github.com/Jean-Tinland/simple-bar")

    @property
    def simple_bar_server_repo(self) -> str:
        return str(
            self._section("simple_bar").get("server_repo") or "https://github.com/Jean-Tinland/simple-bar-server.git"
        )

    @property
    def banana_cursor_url(self) -> str:
        return str(
            self._section("cursor").get("url")
            or "https://github.com/ful1e5/banana-cursor/releases/download/v2.0.0/Banana.tar.xz"
        )

    @property
    def update_checkouts(self) -> bool:
        return bool(self.raw.get("update_checkouts", False))

    @property
    def assume_yes(self) -> bool:
        return bool(self.raw.get("assume_yes", False))

    @property
    def dry_run(self) -> bool:
        return bool(self.raw.get("dry_run", False))

    def with_overrides(self, **overrides: Any) -> "SetupConfig":
        """Return a copy with top-level keys replaced (None values are ignored)."""
        merged = dict(self.raw)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return replace(self, raw=merged)


def load_config(path: Optional[str] = None) -> SetupConfig:
    """Load the YAML config file.

    With no explicit path the default location is optional; an explicit path
    that does not exist is an error.
    """

    p = Path(path or DEFAULT_CONFIG_PATH).expanduser()
    if not p.exists():
        if path:
            raise FileNotFoundError(path)
        return SetupConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping/object")

    return SetupConfig(raw=raw)
