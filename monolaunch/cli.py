"""Command-line entry point.

Pipeline: parse arguments -> resolve configuration -> guard the target
directory -> dry-run report (terminal) or provisioning.  Only :func:`main`
turns exceptions into exit codes.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path

from monolaunch import __version__
from monolaunch.config import RunConfig, ToolConfig
from monolaunch.dry_run import report_dry_run
from monolaunch.guard import DirectoryExistsError, check_target_directory
from monolaunch.resolver import (
    ConfigResolver,
    ConfigValidationError,
    Prompter,
    ResolutionCancelled,
)
from monolaunch.scaffolder import ProjectGenerator, ProvisioningError
from monolaunch.utils import Output

HELP_TEXT = """\
Usage: monolaunch [app-name] [options]

Arguments:
  app-name                    Name of your application

Options:
  -t, --template <type>       Template type (bare|opinionated)
  -a, --architecture <type>   Architecture type (monorepo|nextjs-only)
  -h, --help                  Show help information
  -v, --version               Show version number
  -q, --quiet                 Suppress output (no prompts)
  -f, --force                 Force overwrite existing directory
      --verbose               Show detailed output
      --dry-run               Show what would be created without creating

Examples:
  monolaunch my-app -t bare -a monorepo
  monolaunch my-app --template opinionated --architecture nextjs-only
  monolaunch my-app -t opinionated --verbose
  monolaunch my-app --dry-run
  monolaunch --version
  monolaunch"""

QUIET_HELP_LINES: tuple[str, ...] = (
    "monolaunch - A CLI tool for creating full-stack projects",
    "Usage: monolaunch [app-name] [options]",
    "Use 'monolaunch --help' without --quiet for detailed help",
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class ParseError(Exception):
    """Malformed command line, e.g. ``--template`` without a value."""


class _ArgumentParser(argparse.ArgumentParser):
    """``ArgumentParser`` that raises instead of printing and exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ParseError(message)


@dataclass
class ParsedArgs:
    """Recognised flags plus positionals; unknown flags are kept but unused."""

    project_name: str | None = None
    template: str | None = None
    architecture: str | None = None
    help: bool = False
    version: bool = False
    quiet: bool = False
    force: bool = False
    verbose: bool = False
    dry_run: bool = False
    positionals: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="monolaunch", add_help=False, allow_abbrev=False)
    parser.add_argument("positionals", nargs="*")
    parser.add_argument("-t", "--template")
    parser.add_argument("-a", "--architecture")
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("-v", "--version", action="store_true")
    parser.add_argument("-q", "--quiet", action="store_true")
    parser.add_argument("-f", "--force", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--dry-run", action="store_true")
    return parser


def parse_args(argv: list[str]) -> ParsedArgs:
    """Parse *argv* permissively.

    Unknown flags are collected and ignored; only the first positional is
    used as the project name.

    Raises:
        ParseError: A value-taking flag has no value.
    """
    namespace, unknown = build_parser().parse_known_args(argv)
    # Positionals that follow an option are handed back as "unknown" too
    extra = [arg for arg in unknown if not arg.startswith("-")]
    positionals = list(namespace.positionals) + extra
    return ParsedArgs(
        project_name=positionals[0] if positionals else None,
        template=namespace.template,
        architecture=namespace.architecture,
        help=namespace.help,
        version=namespace.version,
        quiet=namespace.quiet,
        force=namespace.force,
        verbose=namespace.verbose,
        dry_run=namespace.dry_run,
        positionals=positionals,
        unknown=[arg for arg in unknown if arg.startswith("-")],
    )


# ---------------------------------------------------------------------------
# Console sections
# ---------------------------------------------------------------------------


def print_help(output: Output) -> None:
    if output.quiet:
        for line in QUIET_HELP_LINES:
            output.plain(line)
    else:
        output.plain(HELP_TEXT)


def print_summary(config: RunConfig, output: Output) -> None:
    """Show what the resolved configuration will produce."""
    arch = config.architecture.value
    template = config.template_type.value
    if output.quiet:
        output.progress(f"Creating {arch} project: {config.project_name} ({template})")
        return

    output.table(
        {"App name": config.project_name, "Template type": template, "Architecture": arch},
        title="Project Configuration Summary",
    )
    if config.is_monorepo:
        included = [
            "Next.js web application",
            "React Native Expo mobile app",
            "Supabase backend integration",
            "Shared packages and utilities",
        ]
        output.info("[bold]Your monorepo will include:[/bold]")
    else:
        included = [
            "Next.js web application",
            "Supabase backend integration",
            "Optimized for web deployment",
        ]
        output.info("[bold]Your project will include:[/bold]")
    for item in included:
        output.step(item)

    if config.is_opinionated:
        output.info("\n[bold]Additional libraries and tooling included:[/bold]")
        extras = [
            "Zod for schema validation",
            "ShadCN UI components",
            "Legend State for state management",
            "ESLint & Prettier for code quality",
            "TypeScript configuration",
        ]
    else:
        output.info("\n[bold]Bare setup includes:[/bold]")
        extras = [
            "Framework defaults only",
            "No additional libraries or tooling",
            "Clean slate for your own choices",
        ]
    for item in extras:
        output.step(item)
    output.info("")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None, prompter: Prompter | None = None) -> int:
    """Run monolaunch and return the process exit code."""
    raw = list(sys.argv[1:] if argv is None else argv)

    try:
        args = parse_args(raw)
    except ParseError as exc:
        quiet = "-q" in raw or "--quiet" in raw
        Output(quiet=quiet).error(str(exc))
        return 1

    if args.version:
        Output().plain(f"monolaunch v{__version__}")
        return 0

    output = Output(quiet=args.quiet, verbose=args.verbose)
    output.panel(
        "[bold]Welcome to Monolaunch[/bold]\n"
        "Next.js + Expo + Supabase project scaffolder",
        title=f"monolaunch v{__version__}",
        style="bright_cyan",
    )

    if args.help:
        print_help(output)
        return 0

    resolver = ConfigResolver(output, prompter)
    try:
        config = resolver.resolve(
            args.project_name,
            args.architecture,
            args.template,
            force=args.force,
            dry_run=args.dry_run,
            base_dir=Path.cwd(),
        )
    except ResolutionCancelled:
        output.info("[yellow]Operation cancelled.[/yellow]")
        return 0
    except ConfigValidationError as exc:
        output.error(str(exc))
        return 1

    try:
        check_target_directory(config, output)
    except DirectoryExistsError as exc:
        output.error(str(exc))
        return 1

    print_summary(config, output)

    if config.dry_run:
        report_dry_run(config, output)
        return 0

    generator = ProjectGenerator(config, ToolConfig.from_env(), output)
    try:
        asyncio.run(generator.generate())
    except ProvisioningError as exc:
        output.error(str(exc))
        return 1

    output.success("Thanks for using Monolaunch!")
    output.progress(f"Project {config.project_name} created successfully")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
