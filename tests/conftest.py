"""
Shared test fixtures and a simulated host.

FakeHost keeps the real filesystem (rooted in tmp_path) but simulates the
package managers, PATH lookups, login shell and a handful of tools, so whole
provisioning runs can execute without touching the machine.
"""

import json
from pathlib import Path

import pytest

from dotfiles_setup.config import SetupConfig
from dotfiles_setup.errors import CommandError
from dotfiles_setup.lib.command import CmdResult
from dotfiles_setup.lib.host import Host
from dotfiles_setup.pipeline import StepContext
from dotfiles_setup.report import RunReport


class FakeHost(Host):
    def __init__(
        self,
        platform,
        home,
        *,
        binaries=(),
        packages=(),
        login_shell="/bin/bash",
        script_effects=None,
        responses=None,
        failing=(),
        dry_run=False,
        assume_yes=False,
    ):
        super().__init__(
            platform=platform,
            home=home,
            env={"PATH": "/usr/bin"},
            user="tester",
            dry_run=dry_run,
            assume_yes=assume_yes,
            interactive=False,
        )
        self.binaries = set(binaries)
        self.packages = set(packages)
        self.shell_path = login_shell
        # substring of a bash script -> binary it installs
        self.script_effects = dict(script_effects or {})
        # argv tuple -> (returncode, stdout, stderr) answered by query()
        self.responses = dict(responses or {})
        self.failing = set(failing)
        self.commands = []
        self.queries = []
        self.stowed = False
        self.node_installed = False
        self.desktop_picture = None
        self.pm2_apps = set()

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.binaries else None

    def login_shell(self):
        return self.shell_path

    def run(self, argv, *, check=True, cwd=None, input_text=None, capture=False):
        argv = list(argv)
        self.commands.append(argv)
        if self.dry_run:
            return CmdResult(argv=argv, returncode=0, stdout="", stderr="")

        cmd = argv[1:] if argv[0] == "sudo" else argv
        if cmd[0] in self.failing:
            if check:
                raise CommandError(argv, 1, f"{cmd[0]} failed")
            return CmdResult(argv=argv, returncode=1, stdout="", stderr=f"{cmd[0]} failed")

        self._simulate(cmd, cwd)
        return CmdResult(argv=argv, returncode=0, stdout="", stderr="")

    def _simulate(self, cmd, cwd):
        names = [a for a in cmd[2:] if not a.startswith("-")]
        if cmd[:2] in (["apt", "install"], ["pacman", "-S"], ["brew", "install"]):
            self.packages.update(names)
            self.binaries.update(names)
        elif cmd[:2] == ["chsh", "-s"]:
            self.shell_path = cmd[2]
        elif cmd[:2] == ["git", "clone"]:
            (Path(cmd[3]) / ".git").mkdir(parents=True, exist_ok=True)
        elif cmd[0] == "stow":
            self.stowed = True
        elif cmd[:2] == ["mise", "use"]:
            self.node_installed = True
        elif cmd[:3] == ["npm", "install", "pm2"]:
            self.binaries.add("pm2")
        elif cmd[:2] == ["npm", "install"]:
            (Path(cwd) / "node_modules").mkdir(parents=True, exist_ok=True)
        elif cmd[0] == "mv":
            (Path(cmd[2]) / Path(cmd[1]).name).mkdir(parents=True, exist_ok=True)
        elif cmd[:2] == ["pm2", "startOrRestart"]:
            self.pm2_apps.add(Path(cwd).name)
        elif cmd[0] == "osascript" and "set desktop picture" in cmd[-1]:
            self.desktop_picture = cmd[-1].split("POSIX file ", 1)[1].strip("\"")
        elif cmd[0] == "bash" and "-c" in cmd:
            for marker, binary in self.script_effects.items():
                if marker in cmd[-1]:
                    self.binaries.add(binary)

    def query(self, argv, *, cwd=None):
        argv = list(argv)
        self.queries.append(argv)

        def result(rc, out="", err=""):
            return CmdResult(argv=argv, returncode=rc, stdout=out, stderr=err)

        if tuple(argv) in self.responses:
            return result(*self.responses[tuple(argv)])
        if argv[0] == "dpkg-query":
            if argv[-1] in self.packages:
                return result(0, "install ok installed")
            return result(1, err=f"dpkg-query: no packages found matching {argv[-1]}")
        if argv[:2] in (["pacman", "-Q"], ["brew", "list"]):
            return result(0 if argv[-1] in self.packages else 1)
        if argv[:3] == ["mise", "which", "node"]:
            return result(0 if self.node_installed else 1)
        if argv[:2] == ["pm2", "jlist"] and "pm2" in self.binaries:
            apps = [{"name": n, "pm2_env": {"status": "online"}} for n in sorted(self.pm2_apps)]
            return result(0, json.dumps(apps))
        if argv[0] == "osascript" and "get picture" in argv[-1]:
            return result(0, self.desktop_picture) if self.desktop_picture else result(1)
        if argv[0] == "stow":
            return result(0, err="" if self.stowed else "LINK: .zshrc => dotfiles/.zshrc")
        return result(1)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A fake $HOME inside the test's temp dir."""
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def config(tmp_path: Path) -> SetupConfig:
    """Config with system directories redirected into tmp_path."""
    return SetupConfig(
        raw={
            "paths": {
                "applications": str(tmp_path / "Applications"),
                "icons": str(tmp_path / "icons"),
                "extra_path": [],
            }
        }
    )


@pytest.fixture
def make_host(home: Path):
    def _make(platform, **kwargs) -> FakeHost:
        return FakeHost(platform, home, **kwargs)

    return _make


@pytest.fixture
def make_ctx(config: SetupConfig):
    def _make(host, cfg=None) -> StepContext:
        return StepContext(host=host, config=cfg or config, report=RunReport(platform=host.platform))

    return _make
