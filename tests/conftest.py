"""Shared pytest fixtures for the monolaunch test suite.

Provides reusable fixtures for:
- Run configurations rooted in a temporary base directory
- Output objects that record to in-memory consoles
- A scripted prompter standing in for the terminal
- A fake toolchain that replaces every external CLI
"""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from monolaunch.config import Architecture, RunConfig, TemplateType
from monolaunch.resolver import ResolutionCancelled
from monolaunch.utils import Output


# ---------------------------------------------------------------------------
# Output capture
# ---------------------------------------------------------------------------


def _recording_output(quiet: bool = False, verbose: bool = False) -> Output:
    """An ``Output`` whose consoles write to in-memory buffers."""
    return Output(
        quiet=quiet,
        verbose=verbose,
        out=Console(file=io.StringIO(), width=200, color_system=None),
        err=Console(file=io.StringIO(), width=200, color_system=None),
    )


@pytest.fixture
def make_output() -> Callable[..., Output]:
    """Factory for recording outputs; read them back with ``out.file.getvalue()``."""
    return _recording_output


@pytest.fixture
def output() -> Output:
    """Interactive (non-quiet) output recorded in memory."""
    return _recording_output()


@pytest.fixture
def quiet_output() -> Output:
    return _recording_output(quiet=True)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., RunConfig]:
    """Factory for ``RunConfig`` objects whose base directory is ``tmp_path``."""

    def _make(**overrides: Any) -> RunConfig:
        values: dict[str, Any] = {
            "project_name": "myapp",
            "architecture": Architecture.SINGLE_APP,
            "template_type": TemplateType.BARE,
            "base_dir": tmp_path,
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


# ---------------------------------------------------------------------------
# Prompter
# ---------------------------------------------------------------------------


class FakePrompter:
    """Answers prompts from a script and records every question asked.

    An answer of ``None`` simulates the user pressing Ctrl-C.
    """

    def __init__(self, answers: list[Any] | None = None) -> None:
        self.answers = list(answers or [])
        self.asked: list[str] = []

    def _next(self, message: str) -> Any:
        self.asked.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        answer = self.answers.pop(0)
        if answer is None:
            raise ResolutionCancelled()
        return answer

    def ask_text(self, message: str, placeholder: str) -> str:
        return self._next(message)

    def ask_choice(self, message: str, options: dict[str, tuple[str, str]]) -> str:
        return self._next(message)

    def confirm(self, message: str, default: bool = True) -> bool:
        return self._next(message)


@pytest.fixture
def make_prompter() -> Callable[..., FakePrompter]:
    """Factory for scripted prompters, e.g. ``make_prompter(["myapp", None])``."""
    return FakePrompter



# ---------------------------------------------------------------------------
# Fake toolchain
# ---------------------------------------------------------------------------


SAMPLE_SUPABASE_CONFIG = """\
# A string used to distinguish different Supabase projects on the same host.
project_id = "myapp"

[api]
enabled = true
port = 54321

[auth]
enabled = true
# The base URL of your website. Used as an allow-list for redirects.
site_url = "http://127.0.0.1:3000"
# A list of *exact* URLs that auth providers are permitted to redirect to.
additional_redirect_urls = ["https://127.0.0.1:3000"]
jwt_expiry = 3600

[auth.email]
enable_signup = true
"""


@pytest.fixture
def supabase_config_text() -> str:
    """A trimmed ``supabase/config.toml`` as written by ``supabase init``."""
    return SAMPLE_SUPABASE_CONFIG


class FakeToolchain:
    """Drop-in replacement for ``run_command`` that imitates the external CLIs.

    The generators write the files the real tools would leave behind
    (manifests, ``tsconfig.json``, ``app.json``, ``supabase/config.toml`` and
    timestamped migrations) so the file-patching steps have something to
    work on.  Commands containing any string in ``fail_on`` exit with 1.
    """

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = fail_on
        self.calls: list[tuple[list[str], Path | None]] = []
        self._migration_seq = 0

    def commands(self) -> list[str]:
        return [" ".join(cmd) for cmd, _ in self.calls]

    def ran(self, fragment: str) -> bool:
        return any(fragment in command for command in self.commands())

    async def __call__(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        capture: bool = True,
        env: dict[str, str] | None = None,
    ) -> tuple[int, str, str]:
        cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.calls.append((list(cmd), cwd))
        command = " ".join(cmd)
        if any(fragment in command for fragment in self.fail_on):
            return 1, "", f"simulated failure: {command}"

        if "create-next-app" in command:
            self._create_next_app(cwd / cmd[2])
        elif "create-expo-app" in command:
            self._create_expo_app(cwd / cmd[2])
        elif cmd[-1] == "init" and "supabase" in command:
            self._write(cwd / "supabase" / "config.toml", SAMPLE_SUPABASE_CONFIG)
        elif "migration new" in command:
            self._migration_seq += 1
            name = f"2025010100000{self._migration_seq}_{cmd[-1]}.sql"
            self._write(cwd / "supabase" / "migrations" / name, "")
        return 0, "", ""

    # -- Simulated generator output ---------------------------------------

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def _create_next_app(self, app: Path) -> None:
        manifest = {"name": app.name, "scripts": {"dev": "next dev", "custom": "echo hi"}}
        self._write(app / "package.json", json.dumps(manifest, indent=2))
        self._write(app / "tsconfig.json", json.dumps({"compilerOptions": {"strict": True}}))
        self._write(app / "next.config.ts", "export default {};\n")
        self._write(app / "src" / "app" / "page.tsx", "export default function Page() {}\n")

    def _create_expo_app(self, app: Path) -> None:
        self._write(app / "package.json", json.dumps({"name": app.name, "main": "index.js"}))
        self._write(app / "app.json", json.dumps({"expo": {"name": app.name, "slug": app.name}}))
        self._write(app / "tsconfig.json", json.dumps({"extends": "expo/tsconfig.base"}))
        self._write(app / "App.tsx", "export default function App() {}\n")


@pytest.fixture
def toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def fake_tools(toolchain: FakeToolchain):
    """Patch the subprocess seam so every external CLI is the fake toolchain."""
    with patch("monolaunch.scaffolder.steps.run_command", new=toolchain), patch(
        "monolaunch.scaffolder.orchestrator.detect_package_manager",
        new=AsyncMock(return_value="pnpm"),
    ):
        yield toolchain
