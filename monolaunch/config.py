"""Monolaunch configuration.

Two typed models drive a run:

* ``RunConfig`` -- the resolved answers for one invocation (project name,
  architecture, template type and the behaviour flags).  It is frozen: once
  the resolver hands it over, nothing downstream can change the project name
  or the target path.
* ``ToolConfig`` -- the command prefixes of the external scaffolders and CLIs
  that provisioning shells out to.  Defaults match the published tools;
  ``MONOLAUNCH_*`` environment variables override them (handy for pinning a
  version or pointing at a local build).
"""

from __future__ import annotations

import os
import shlex
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Architecture(str, Enum):
    """Top-level project shape."""

    MONOREPO = "monorepo"
    SINGLE_APP = "nextjs-only"


class TemplateType(str, Enum):
    """How much tooling is layered on top of the framework defaults."""

    BARE = "bare"
    OPINIONATED = "opinionated"


ARCHITECTURE_CHOICES: tuple[str, ...] = tuple(a.value for a in Architecture)
TEMPLATE_CHOICES: tuple[str, ...] = tuple(t.value for t in TemplateType)


class RunConfig(BaseModel):
    """Fully resolved configuration for one scaffolding run."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., min_length=1, description="Directory and package name")
    architecture: Architecture
    template_type: TemplateType
    quiet: bool = False
    verbose: bool = False
    force: bool = False
    dry_run: bool = False
    all_ui_components: bool = Field(
        default=True,
        description="Install every web UI component instead of the bare init",
    )
    base_dir: Path = Field(default_factory=Path.cwd)

    @field_validator("project_name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("project name must not be empty")
        return value

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def target_path(self) -> Path:
        """Absolute root of the project being created."""
        return Path(self.base_dir).resolve() / self.project_name

    @property
    def web_app_path(self) -> Path:
        """Where the Next.js app lives: the root, or ``apps/web`` in a monorepo."""
        if self.is_monorepo:
            return self.target_path / "apps" / "web"
        return self.target_path

    @property
    def mobile_app_path(self) -> Path:
        return self.target_path / "apps" / "mobile"

    @property
    def shared_package_path(self) -> Path:
        return self.target_path / "packages" / "shared"

    @property
    def is_monorepo(self) -> bool:
        return self.architecture is Architecture.MONOREPO

    @property
    def is_opinionated(self) -> bool:
        return self.template_type is TemplateType.OPINIONATED


class ToolConfig(BaseModel):
    """Command prefixes for every external collaborator.

    Each prefix is a shell-style string; :meth:`argv` splits it and appends
    the step-specific arguments.
    """

    web_generator: str = Field(default="npx create-next-app@latest")
    mobile_generator: str = Field(default="npx create-expo-app@latest")
    expo: str = Field(default="npx expo")
    supabase: str = Field(default="npx supabase")
    shadcn: str = Field(default="pnpm dlx shadcn@latest")
    mobile_ui: str = Field(default="npx @react-native-reusables/cli@latest")
    package_manager: str = Field(default="pnpm")
    site_url: str = Field(default="http://localhost:3000")
    migration_name: str = Field(default="initial_setup")

    def argv(self, tool: str, *args: str) -> list[str]:
        """Return the full argument vector for *tool* followed by *args*.

        Example::

            ToolConfig().argv("supabase", "init") -> ["npx", "supabase", "init"]
        """
        prefix = getattr(self, tool)
        return [*shlex.split(prefix), *args]

    @classmethod
    def from_env(cls) -> "ToolConfig":
        """Build a ``ToolConfig`` from environment variables.

        Recognised variables (all optional):
            MONOLAUNCH_WEB_GENERATOR, MONOLAUNCH_MOBILE_GENERATOR,
            MONOLAUNCH_EXPO, MONOLAUNCH_SUPABASE, MONOLAUNCH_SHADCN,
            MONOLAUNCH_MOBILE_UI, MONOLAUNCH_PACKAGE_MANAGER,
            MONOLAUNCH_SITE_URL.
        """
        kwargs: dict[str, Any] = {}
        for field_name in (
            "web_generator",
            "mobile_generator",
            "expo",
            "supabase",
            "shadcn",
            "mobile_ui",
            "package_manager",
            "site_url",
        ):
            value = os.environ.get(f"MONOLAUNCH_{field_name.upper()}")
            if value:
                kwargs[field_name] = value
        return cls(**kwargs)
