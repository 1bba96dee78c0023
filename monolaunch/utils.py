"""Shared utility functions for Monolaunch.

Provides async command execution, JSON and text file I/O, package-manager
detection and the Rich-based ``Output`` helper that implements the CLI's
quiet/verbose contract:

* normal mode -- styled progress, warnings and errors;
* ``--verbose`` -- additionally echoes every external command before it runs;
* ``--quiet`` -- nothing on stdout except, with ``--verbose``, single-line
  progress; errors go to stderr as one plain line.
"""

from __future__ import annotations

import asyncio
import json
import shlex
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    capture: bool = True,
) -> tuple[int, str, str]:
    """Run a command asynchronously and wait for it to exit.

    There is no timeout: scaffolders and installers can take minutes and
    are left to finish.

    Args:
        cmd: Argument vector; the first element is the program.
        cwd: Working directory for the child process.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams, so the user sees the tool's own output).

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.
    """
    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=stdout_pipe,
        stderr=stderr_pipe,
        cwd=str(cwd) if cwd else None,
    )

    stdout_bytes, stderr_bytes = await process.communicate()

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


def format_command(cmd: list[str]) -> str:
    """Render an argument vector the way a user would type it."""
    return shlex.join(cmd)


# ---------------------------------------------------------------------------
# Package-manager detection
# ---------------------------------------------------------------------------

_LOCK_FILES: tuple[tuple[str, str], ...] = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
)


async def detect_package_manager(cwd: str | Path | None = None) -> str:
    """Guess the user's package manager.

    Lock files in *cwd* win; otherwise ``pnpm`` then ``yarn`` are probed by
    running ``<tool> --version`` silently.  Falls back to ``npm``.
    """
    base = Path(cwd) if cwd else Path.cwd()
    for lock_file, manager in _LOCK_FILES:
        if (base / lock_file).exists():
            return manager

    for manager in ("pnpm", "yarn"):
        try:
            returncode, _, _ = await run_command([manager, "--version"], cwd=base)
        except OSError:
            continue
        if returncode == 0:
            return manager
    return "npm"


# ---------------------------------------------------------------------------
# JSON / text I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON object file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


def dump_json(data: dict[str, Any] | list[Any]) -> str:
    """Serialise *data* the way package manifests are written (2-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_text(path: str | Path, content: str) -> Path:
    """Create-or-truncate *path* with *content*; parent directories are created."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    return file_path


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class Output:
    """Console writer that honours ``--quiet`` and ``--verbose``.

    Every user-facing line goes through one of these methods so that the
    quiet-mode contract is enforced in a single place.
    """

    def __init__(
        self,
        quiet: bool = False,
        verbose: bool = False,
        out: Console | None = None,
        err: Console | None = None,
    ) -> None:
        self.quiet = quiet
        self.verbose = verbose
        self.out = out or console
        self.err = err or err_console

    # -- Normal-mode output --------------------------------------------------

    def header(self, title: str, color: str = "bright_cyan") -> None:
        if self.quiet:
            return
        self.out.print()
        self.out.print(Rule(f"[bold {color}] {title} [/bold {color}]", style=color))
        self.out.print()

    def info(self, message: str) -> None:
        if not self.quiet:
            self.out.print(message)

    def step(self, message: str) -> None:
        """Print an indented bullet for a provisioning sub-step."""
        if not self.quiet:
            self.out.print(f"  [dim]•[/dim] {message}")

    def success(self, message: str) -> None:
        if not self.quiet:
            self.out.print(f"[bold green]{message}[/bold green]")

    def panel(self, body: str, title: str, style: str = "cyan") -> None:
        if not self.quiet:
            self.out.print(Panel(body, title=title, border_style=style))

    def table(self, data: dict[str, str], title: str) -> None:
        """Print a two-column key/value summary table."""
        if self.quiet:
            return
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Item", style="dim", no_wrap=True)
        table.add_column("Value")
        for key, value in data.items():
            table.add_row(key, str(value))
        self.out.print(table)
        self.out.print()

    # -- Output that survives quiet mode -----------------------------------

    def warning(self, message: str) -> None:
        if not self.quiet:
            self.out.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")
        elif self.verbose:
            self.plain(f"Warning: {message}")

    def error(self, message: str) -> None:
        """Report an error on stderr: one plain line in quiet mode."""
        if self.quiet:
            self.err.print(f"Error: {message}", markup=False, highlight=False, soft_wrap=True)
        else:
            self.err.print(f"[bold red]Error:[/bold red] {escape(message)}", soft_wrap=True)

    def progress(self, message: str) -> None:
        """Single-line progress, shown only for ``--quiet --verbose``."""
        if self.quiet and self.verbose:
            self.plain(message)

    def command(self, cmd: list[str], cwd: str | Path | None = None) -> None:
        """Echo an external command before it runs (verbose, non-quiet)."""
        if self.quiet or not self.verbose:
            return
        location = f" [dim](in {escape(str(cwd))})[/dim]" if cwd else ""
        self.out.print(f"  [dim]$[/dim] {escape(format_command(cmd))}{location}", highlight=False)

    def plain(self, message: str) -> None:
        """Write *message* verbatim to stdout (no markup, no wrapping)."""
        self.out.print(message, markup=False, highlight=False, soft_wrap=True)
