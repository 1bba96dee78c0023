"""Dry-run report: what a run would create, without creating anything."""

from __future__ import annotations

from dataclasses import dataclass

from rich.markup import escape
from rich.tree import Tree

from monolaunch.config import RunConfig
from monolaunch.utils import Output


@dataclass(frozen=True)
class PlannedPath:
    """One top-level entry of the would-be project tree."""

    path: str
    description: str = ""
    is_dir: bool = False

    def label(self) -> str:
        icon = "📁" if self.is_dir else "📄"
        suffix = f" ({self.description})" if self.description else ""
        return f"{icon} {self.path}{suffix}"


def plan_paths(config: RunConfig) -> list[PlannedPath]:
    """Top-level paths for *config*'s architecture and template type."""
    if config.is_monorepo:
        planned = [
            PlannedPath("apps/web/", "Next.js application", is_dir=True),
            PlannedPath("apps/mobile/", "Expo application", is_dir=True),
            PlannedPath("packages/shared/", "Shared utilities", is_dir=True),
            PlannedPath("pnpm-workspace.yaml"),
        ]
    else:
        planned = [
            PlannedPath("src/", "Next.js source code", is_dir=True),
            PlannedPath("supabase/", "Database configuration", is_dir=True),
        ]

    planned += [
        PlannedPath("README.md"),
        PlannedPath("CLAUDE.md"),
        PlannedPath("COOLIFY_DEPLOYMENT.md"),
        PlannedPath("package.json"),
        PlannedPath("types/", "TypeScript definitions", is_dir=True),
    ]
    if config.is_opinionated:
        planned += [
            PlannedPath("components/ui/", "UI components", is_dir=True),
            PlannedPath("stores/", "Legend State configuration", is_dir=True),
        ]
    return planned


def report_dry_run(config: RunConfig, output: Output) -> list[PlannedPath]:
    """Print the plan.  Touches neither the filesystem nor any subprocess."""
    planned = plan_paths(config)
    if output.quiet:
        output.plain("DRY RUN - No files would be created")
        output.plain(f"Project: {config.project_name}")
        output.plain(f"Architecture: {config.architecture.value}")
        output.plain(f"Template: {config.template_type.value}")
        output.plain(f"Target directory: {config.target_path}")
        return planned

    output.header("DRY RUN - showing what would be created", color="yellow")
    output.table(
        {
            "Target directory": str(config.target_path),
            "Architecture": config.architecture.value,
            "Template": config.template_type.value,
        },
        title="Configuration",
    )
    tree = Tree(f"[bold]{escape(config.project_name)}/[/bold]")
    for entry in planned:
        tree.add(escape(entry.label()))
    output.out.print(tree)
    output.out.print()
    output.info("[dim]Use without --dry-run to actually create the project[/dim]")
    return planned
