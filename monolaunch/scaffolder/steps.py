"""Provisioning step contract shared by both generation flows.

Every step is one of two shapes:

* **file write** -- content is computed from the step's parameters and
  written with create-or-truncate semantics (last write wins);
* **subprocess** -- an external tool is run in an explicit working
  directory; a zero exit status is success.

Steps never rely on the process working directory; every path they touch
is passed in.  A step signals failure by raising a ``StepError``; the
orchestrator decides, from the step's ``required`` flag, whether that
failure aborts the run or is downgraded to a warning.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from monolaunch.config import ToolConfig
from monolaunch.utils import Output, format_command, run_command, write_text


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StepError(Exception):
    """Raised when a provisioning step cannot complete."""


class CommandFailedError(StepError):
    """An external tool exited non-zero (or could not be started)."""

    def __init__(
        self,
        cmd: list[str],
        cwd: Path | None,
        returncode: int | None,
        detail: str = "",
    ) -> None:
        self.cmd = cmd
        self.cwd = cwd
        self.returncode = returncode
        self.detail = detail
        status = f"exit code {returncode}" if returncode is not None else "could not start"
        message = f"`{format_command(cmd)}` failed ({status})"
        if detail:
            message += f": {detail.splitlines()[-1]}"
        super().__init__(message)


class MigrationNotFoundError(StepError):
    """The migration the backend CLI was asked to create cannot be located."""

    def __init__(self, migrations_dir: Path, marker: str) -> None:
        self.migrations_dir = migrations_dir
        self.marker = marker
        super().__init__(f"No migration matching '{marker}' found in {migrations_dir}")


class ProvisioningError(Exception):
    """A required step failed; the project on disk is partial."""

    def __init__(self, step_name: str, project_path: Path, cause: BaseException) -> None:
        self.step_name = step_name
        self.project_path = project_path
        self.cause = cause
        super().__init__(
            f"{step_name} failed: {cause} -- "
            f"partial project created at {project_path}; re-run with --force to retry"
        )


# ---------------------------------------------------------------------------
# Step model
# ---------------------------------------------------------------------------


StepAction = Callable[[], Awaitable[object]]


@dataclass
class ProvisioningStep:
    """One named, ordered action in a generation flow."""

    name: str
    action: StepAction
    required: bool = True


@dataclass
class StepResult:
    """Outcome of a single executed step."""

    name: str
    required: bool
    success: bool
    error: str | None = None


# ---------------------------------------------------------------------------
# Step primitives
# ---------------------------------------------------------------------------


async def write_file(path: str | Path, content: str) -> Path:
    """File-write primitive: create parents, then create-or-truncate *path*."""
    return await asyncio.to_thread(write_text, Path(path), content)


class ToolRunner:
    """Subprocess primitive bound to the run's tool prefixes and output mode.

    Output of the child is streamed to the terminal in normal mode and
    captured (hidden) in quiet mode.  Verbose mode echoes the command first.
    """

    def __init__(self, tools: ToolConfig, output: Output) -> None:
        self.tools = tools
        self.output = output

    async def run(self, cmd: list[str], cwd: str | Path) -> None:
        """Run *cmd* in *cwd*; raise ``CommandFailedError`` on a non-zero exit."""
        cwd_path = Path(cwd)
        self.output.command(cmd, cwd_path)
        try:
            returncode, _, stderr = await run_command(
                cmd, cwd=cwd_path, capture=self.output.quiet
            )
        except OSError as exc:
            raise CommandFailedError(cmd, cwd_path, None, str(exc)) from exc
        if returncode != 0:
            raise CommandFailedError(cmd, cwd_path, returncode, stderr)

    async def run_tool(self, tool: str, *args: str, cwd: str | Path) -> None:
        """Run one of the configured tools, e.g. ``run_tool("supabase", "init", cwd=p)``."""
        await self.run(self.tools.argv(tool, *args), cwd)

    async def add_packages(
        self, packages: list[str], cwd: str | Path, *, dev: bool = False
    ) -> None:
        """Add dependencies to a web or workspace package with the package manager."""
        args = ["add", *(["-D"] if dev else []), *packages]
        await self.run_tool("package_manager", *args, cwd=cwd)

    async def expo_install(self, packages: list[str], cwd: str | Path) -> None:
        """Install SDK-compatible versions of *packages* into an Expo app."""
        await self.run_tool("expo", "install", *packages, cwd=cwd)
