"""
Tests for the package table, the tools manifest and the package-manager layer.
"""

from pathlib import Path

import pytest

from dotfiles_setup.lib import pkg
from dotfiles_setup.lib.osdetect import Platform
from dotfiles_setup.packages import (
    PackageKind,
    PackageSpec,
    load_package_table,
    load_tools,
    packages_for,
)


class TestPackageTable:
    """The bundled packages.yaml and user overrides."""

    def test_bundled_table_covers_every_platform(self):
        table = load_package_table()
        assert set(table) == {Platform.MACOS, Platform.UBUNTU, Platform.ARCH}

    def test_kinds_match_platform(self):
        table = load_package_table()
        mac_kinds = {s.kind for s in packages_for(Platform.MACOS, table)}
        assert mac_kinds == {PackageKind.FORMULA, PackageKind.CASK}
        for plat in (Platform.UBUNTU, Platform.ARCH):
            assert {s.kind for s in packages_for(plat, table)} == {PackageKind.SYSTEM}

    def test_distro_specific_names(self):
        table = load_package_table()
        ubuntu = {s.name for s in packages_for(Platform.UBUNTU, table)}
        arch = {s.name for s in packages_for(Platform.ARCH, table)}
        assert "fd-find" in ubuntu and "fd" not in ubuntu
        assert "github-cli" in arch and "gh" not in arch

    def test_override_file(self, tmp_path: Path):
        p = tmp_path / "packages.yaml"
        p.write_text("ubuntu:\n  system-package: [git, stow]\n")
        table = load_package_table(p)
        assert packages_for(Platform.UBUNTU, table) == [
            PackageSpec("git", PackageKind.SYSTEM),
            PackageSpec("stow", PackageKind.SYSTEM),
        ]
        assert packages_for(Platform.MACOS, table) == []

    def test_unknown_kind_rejected(self, tmp_path: Path):
        p = tmp_path / "packages.yaml"
        p.write_text("arch:\n  flatpak: [foo]\n")
        with pytest.raises(ValueError, match="Unknown package kind"):
            load_package_table(p)

    def test_unknown_platform_rejected(self, tmp_path: Path):
        p = tmp_path / "packages.yaml"
        p.write_text("fedora:\n  system-package: [git]\n")
        with pytest.raises(ValueError, match="Unknown platform"):
            load_package_table(p)


class TestTools:
    def test_bundled_tools(self):
        tools = {t.name: t for t in load_tools()}
        assert tools["mise"].platforms == frozenset({Platform.UBUNTU, Platform.ARCH})
        assert tools["starship"].platforms == frozenset({Platform.UBUNTU})
        assert tools["lazygit"].command == "lazygit"

    def test_arch_mise_prefers_aur_helpers(self):
        mise = next(t for t in load_tools() if t.name == "mise")
        methods = mise.methods[Platform.ARCH]
        assert [m.when for m in methods] == ["yay", "paru", None]
        assert methods[-1].shell_init == 'eval "$(~/.local/bin/mise activate zsh)"'


class TestPackageManager:
    """Install batching and kind checks in lib/pkg.py."""

    def test_apt_batches_into_one_call(self, make_host):
        host = make_host(Platform.UBUNTU)
        specs = [PackageSpec("git", PackageKind.SYSTEM), PackageSpec("stow", PackageKind.SYSTEM)]
        pkg.install(host, specs)
        assert host.commands == [["sudo", "apt", "install", "-y", "git", "stow"]]

    def test_pacman_uses_needed(self, make_host):
        host = make_host(Platform.ARCH)
        pkg.install(host, [PackageSpec("git", PackageKind.SYSTEM)])
        assert host.commands == [["sudo", "pacman", "-S", "--needed", "--noconfirm", "git"]]

    def test_brew_installs_one_at_a_time(self, make_host):
        host = make_host(Platform.MACOS)
        pkg.install(host, [PackageSpec("git", PackageKind.FORMULA), PackageSpec("ghostty", PackageKind.CASK)])
        assert host.commands == [["brew", "install", "git"], ["brew", "install", "--cask", "ghostty"]]

    def test_cask_on_linux_rejected(self, make_host):
        host = make_host(Platform.UBUNTU)
        with pytest.raises(ValueError, match="cannot handle cask"):
            pkg.install(host, [PackageSpec("ghostty", PackageKind.CASK)])
        assert host.commands == []

    def test_refresh_is_noop_on_macos(self, make_host):
        host = make_host(Platform.MACOS)
        pkg.refresh_index(host)
        assert host.commands == []

    def test_dpkg_marker_required(self, make_host):
        """A removed-but-configured package is not installed."""
        argv = ("dpkg-query", "-W", "-f=${Status}", "git")
        host = make_host(Platform.UBUNTU, responses={argv: (0, "deinstall ok config-files", "")})
        assert not pkg.is_installed(host, PackageSpec("git", PackageKind.SYSTEM))

    def test_missing_packages(self, make_host):
        host = make_host(Platform.ARCH, packages={"git"})
        specs = [PackageSpec("git", PackageKind.SYSTEM), PackageSpec("fzf", PackageKind.SYSTEM)]
        assert pkg.missing_packages(host, specs) == [PackageSpec("fzf", PackageKind.SYSTEM)]
