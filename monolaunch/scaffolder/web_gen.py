"""Next.js application steps.

Wraps the ``create-next-app`` generator, dependency installation, the
ShadCN UI CLI and the opinionated extras (Zod, Legend State, Prettier).
Mobile apps share the last three helpers; ``kind`` selects the installer
(``pnpm add`` for web, ``expo install`` for mobile) and the template variant.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from monolaunch.utils import Output, dump_json

from .manifest import update_manifest
from .steps import CommandFailedError, ToolRunner, write_file
from .supabase_gen import DB_TYPES_COMMAND, MOBILE, WEB
from .templates import TemplateRenderer

NEXT_APP_FLAGS: tuple[str, ...] = (
    "--typescript",
    "--tailwind",
    "--eslint",
    "--app",
    "--src-dir",
    "--import-alias",
    "@/*",
    "--yes",
)

BACKEND_PACKAGES: list[str] = ["@supabase/supabase-js", "@supabase/ssr", "server-only"]

STATE_PACKAGES: dict[str, list[str]] = {
    WEB: ["@legendapp/state@beta", "uuid"],
    MOBILE: ["@legendapp/state@beta", "uuid", "react-native-mmkv"],
}

LINT_PACKAGES: list[str] = ["prettier", "eslint-config-prettier", "prettier-plugin-tailwindcss"]

PRETTIER_CONFIG: dict[str, object] = {
    "semi": True,
    "singleQuote": False,
    "trailingComma": "es5",
    "printWidth": 100,
    "tabWidth": 2,
    "plugins": ["prettier-plugin-tailwindcss"],
}

# Config files the generator may have written that would shadow next.config.js
_NEXT_CONFIG_VARIANTS: tuple[str, ...] = ("next.config.ts", "next.config.mjs")


class WebGenerator:
    """Steps that create and enrich the Next.js app (and shared extras)."""

    def __init__(self, renderer: TemplateRenderer, runner: ToolRunner, output: Output) -> None:
        self.renderer = renderer
        self.runner = runner
        self.output = output

    # -- Generator -----------------------------------------------------------

    async def create_next_app(self, app_path: Path) -> None:
        """Run ``create-next-app`` so that it creates *app_path*.

        The generator is invoked from the parent directory with the app's
        directory name, which is how it expects to be called.
        """
        await asyncio.to_thread(app_path.parent.mkdir, parents=True, exist_ok=True)
        await self.runner.run_tool(
            "web_generator", app_path.name, *NEXT_APP_FLAGS, cwd=app_path.parent
        )

    # -- Dependencies --------------------------------------------------------

    async def install_backend_deps(self, app_path: Path) -> None:
        await self.runner.add_packages(BACKEND_PACKAGES, cwd=app_path)

    async def install_schema_validation(self, app_path: Path, kind: str = WEB) -> None:
        """Install Zod."""
        await self._install(app_path, kind, ["zod"])

    async def setup_shadcn(self, app_path: Path, all_components: bool = True) -> None:
        """Initialise ShadCN UI and optionally add every component.

        ``init`` failing raises; a failing bulk ``add`` is reported as a
        warning because a partial component set still leaves a usable app.
        """
        await self.runner.run_tool("shadcn", "init", "--yes", "--defaults", cwd=app_path)
        if not all_components:
            self.output.step("ShadCN UI initialised; add components later with `shadcn add`")
            return
        try:
            await self.runner.run_tool("shadcn", "add", "--all", "--yes", cwd=app_path)
        except CommandFailedError as exc:
            self.output.warning(f"Some ShadCN components may not have been installed ({exc})")

    # -- Opinionated scaffolds ----------------------------------------------

    async def setup_state_store(self, app_path: Path, kind: str = WEB) -> list[Path]:
        """Install Legend State and write ``stores/userStore.ts`` with its types."""
        await self._install(app_path, kind, STATE_PACKAGES[kind])
        context = {"mobile": kind == MOBILE, "db_types_command": DB_TYPES_COMMAND}
        store = await self.renderer.render_to_file(
            "state/userStore.ts.j2", app_path / "stores" / "userStore.ts", context
        )
        types = await self.renderer.render_to_file(
            "state/supabase.ts.j2", app_path / "types" / "supabase.ts", context
        )
        return [store, types]

    async def setup_lint_format(self, app_path: Path, kind: str = WEB) -> list[Path]:
        """Install Prettier, write its config and add ``format`` scripts."""
        await self.runner.add_packages(LINT_PACKAGES, cwd=app_path, dev=True)
        rc = await write_file(app_path / ".prettierrc", dump_json(PRETTIER_CONFIG))
        ignore = await self.renderer.render_to_file(
            "tooling/prettierignore.j2", app_path / ".prettierignore", {"mobile": kind == MOBILE}
        )

        def add_format_scripts(manifest: dict) -> dict:
            scripts = {
                **manifest.get("scripts", {}),
                "format": "prettier --write .",
                "format:check": "prettier --check .",
            }
            return {**manifest, "scripts": scripts}

        await update_manifest(app_path, add_format_scripts)
        return [rc, ignore]

    # -- Build configuration -------------------------------------------------

    def render_next_config(self, transpile_packages: list[str] | None = None) -> str:
        return self.renderer.render(
            "web/next.config.js.j2",
            {"standalone": True, "transpile_packages": transpile_packages or []},
        )

    async def write_next_config(
        self, app_path: Path, transpile_packages: list[str] | None = None
    ) -> Path:
        """Overwrite ``next.config.js`` to request a standalone build.

        Any ``next.config.ts``/``.mjs`` left by the generator is removed so
        the written file is the one Next.js loads.
        """
        for name in _NEXT_CONFIG_VARIANTS:
            variant = app_path / name
            if variant.exists():
                await asyncio.to_thread(variant.unlink)
        return await write_file(
            app_path / "next.config.js", self.render_next_config(transpile_packages)
        )

    # -- Internal helpers ----------------------------------------------------

    async def _install(self, app_path: Path, kind: str, packages: list[str]) -> None:
        if kind == MOBILE:
            await self.runner.expo_install(packages, cwd=app_path)
        else:
            await self.runner.add_packages(packages, cwd=app_path)
