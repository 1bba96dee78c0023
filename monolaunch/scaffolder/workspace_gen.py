"""pnpm workspace scaffolding for monorepo projects.

Writes the workspace declaration, the root manifest, the shared internal
package and the root TypeScript project references, then links each app to
the shared package through a ``tsconfig`` path alias and a
``workspace:*`` dependency.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import yaml

from monolaunch.utils import dump_json, load_json

from .manifest import update_manifest
from .steps import StepError, write_file
from .supabase_gen import MOBILE, WEB
from .templates import TemplateRenderer, slugify

WORKSPACE_GLOBS: list[str] = ["apps/*", "packages/*"]

TYPESCRIPT_VERSION = "^5.0.0"


def shared_package_name(project_name: str) -> str:
    """npm name of the shared package, scoped to the slugified project name."""
    return f"@{slugify(project_name)}/shared"


# ---------------------------------------------------------------------------
# Pure content builders
# ---------------------------------------------------------------------------


def render_workspace_yaml() -> str:
    return yaml.dump({"packages": WORKSPACE_GLOBS}, default_flow_style=False, sort_keys=False)


def root_manifest(project_name: str) -> dict[str, Any]:
    return {
        "name": project_name,
        "version": "0.0.0",
        "private": True,
        "workspaces": WORKSPACE_GLOBS,
        "scripts": {
            "dev": "pnpm run --parallel dev",
            "build": "pnpm run --recursive build",
            "lint": "pnpm run --recursive lint",
            "type-check": "pnpm run --recursive type-check",
        },
        "devDependencies": {"typescript": TYPESCRIPT_VERSION},
    }


def shared_manifest(project_name: str) -> dict[str, Any]:
    return {
        "name": shared_package_name(project_name),
        "version": "0.0.0",
        "private": True,
        "main": "dist/index.js",
        "types": "dist/index.d.ts",
        "scripts": {
            "build": "tsc",
            "dev": "tsc --watch",
            "type-check": "tsc --noEmit",
        },
        "devDependencies": {"typescript": TYPESCRIPT_VERSION},
    }


SHARED_TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2022",
        "module": "ESNext",
        "moduleResolution": "node",
        "composite": True,
        "declaration": True,
        "declarationMap": True,
        "outDir": "./dist",
        "rootDir": "./src",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
    },
    "include": ["src/**/*"],
    "exclude": ["node_modules", "dist"],
}

ROOT_TSCONFIG: dict[str, Any] = {
    "files": [],
    "references": [
        {"path": "./apps/web"},
        {"path": "./apps/mobile"},
        {"path": "./packages/shared"},
    ],
}

# Starting point when an app has no tsconfig.json of its own
_DEFAULT_APP_TSCONFIG: dict[str, dict[str, Any]] = {
    WEB: {"compilerOptions": {"strict": True}},
    MOBILE: {"extends": "expo/tsconfig.base", "compilerOptions": {"strict": True}},
}


def add_shared_alias(tsconfig: dict[str, Any], project_name: str) -> dict[str, Any]:
    """Return *tsconfig* with path aliases for the shared package.

    Apps live two levels below the workspace root, so the alias points at
    ``../../packages/shared/src``.  Other ``paths`` entries are kept.
    """
    name = shared_package_name(project_name)
    options = dict(tsconfig.get("compilerOptions", {}))
    paths = dict(options.get("paths", {}))
    paths[name] = ["../../packages/shared/src"]
    paths[f"{name}/*"] = ["../../packages/shared/src/*"]
    options["paths"] = paths
    return {**tsconfig, "compilerOptions": options}


# ---------------------------------------------------------------------------
# WorkspaceGenerator
# ---------------------------------------------------------------------------


class WorkspaceGenerator:
    """Generates the monorepo skeleton around the apps."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def write_workspace(self, root: Path, project_name: str) -> list[Path]:
        """Write ``pnpm-workspace.yaml`` and the root ``package.json``."""
        workspace = await write_file(root / "pnpm-workspace.yaml", render_workspace_yaml())
        manifest = await write_file(root / "package.json", dump_json(root_manifest(project_name)))
        return [workspace, manifest]

    async def write_shared_package(self, root: Path, project_name: str) -> list[Path]:
        """Write ``packages/shared`` with its manifest, tsconfig and sources."""
        shared = root / "packages" / "shared"
        written = [
            await write_file(shared / "package.json", dump_json(shared_manifest(project_name))),
            await write_file(shared / "tsconfig.json", dump_json(SHARED_TSCONFIG)),
        ]
        written += await self.renderer.render_tree("workspace/shared/src", shared / "src")
        return written

    async def write_root_tsconfig(self, root: Path) -> Path:
        """Root ``tsconfig.json`` declaring project references to every package."""
        return await write_file(root / "tsconfig.json", dump_json(ROOT_TSCONFIG))

    async def create_app_dirs(self, root: Path) -> None:
        for app in ("web", "mobile"):
            await asyncio.to_thread((root / "apps" / app).mkdir, parents=True, exist_ok=True)

    async def link_shared_package(self, app_path: Path, kind: str, project_name: str) -> Path:
        """Make *app_path* resolve the shared package.

        Adds the ``tsconfig`` path alias (creating the file if the generator
        did not) and a ``workspace:*`` dependency in the app manifest.
        """
        tsconfig_path = app_path / "tsconfig.json"
        if tsconfig_path.is_file():
            try:
                tsconfig = await asyncio.to_thread(load_json, tsconfig_path)
            except json.JSONDecodeError as exc:
                raise StepError(f"Cannot parse {tsconfig_path}: {exc}") from exc
        else:
            tsconfig = _DEFAULT_APP_TSCONFIG[kind]
        await write_file(tsconfig_path, dump_json(add_shared_alias(tsconfig, project_name)))

        name = shared_package_name(project_name)

        def add_dependency(manifest: dict[str, Any]) -> dict[str, Any]:
            deps = {**manifest.get("dependencies", {}), name: "workspace:*"}
            return {**manifest, "dependencies": deps}

        await update_manifest(app_path, add_dependency)
        return tsconfig_path
