"""Project documentation: README, AI-assistant context and deployment guide."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .templates import TemplateRenderer
from .workspace_gen import shared_package_name


def docs_context(
    project_name: str,
    monorepo: bool,
    opinionated: bool,
    site_url: str = "http://localhost:3000",
) -> dict[str, Any]:
    """Template context shared by every generated document."""
    return {
        "project_name": project_name,
        "monorepo": monorepo,
        "opinionated": opinionated,
        "site_url": site_url,
        "shared_package": shared_package_name(project_name),
        "supabase_dir": "apps/web/supabase" if monorepo else "supabase",
    }


class DocsGenerator:
    """Renders the Markdown documents at the project root."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def write_deployment_guide(self, root: Path, context: dict[str, Any]) -> Path:
        return await self.renderer.render_to_file(
            "docs/COOLIFY_DEPLOYMENT.md.j2", root / "COOLIFY_DEPLOYMENT.md", context
        )

    async def write_readme(self, root: Path, context: dict[str, Any]) -> Path:
        return await self.renderer.render_to_file("docs/README.md.j2", root / "README.md", context)

    async def write_ai_context(self, root: Path, context: dict[str, Any]) -> Path:
        """Write ``CLAUDE.md``, the guidance file read by AI coding assistants."""
        return await self.renderer.render_to_file("docs/CLAUDE.md.j2", root / "CLAUDE.md", context)
