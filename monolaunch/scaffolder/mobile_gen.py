"""Expo application steps.

Creates the Expo app, converts it to Expo Router (dependencies, ``app/``
screens, manifest entry point, ``app.json`` plugin and scheme, Babel
config) and installs the Supabase client dependencies.  This is the step
with the most assumptions about generated file shapes, so every patch
checks what it finds before changing it.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from monolaunch.utils import Output, dump_json, load_json

from .manifest import update_manifest
from .steps import StepError, ToolRunner, write_file
from .templates import TemplateRenderer, slugify

ROUTER_PACKAGES: list[str] = [
    "expo-router",
    "react-native-safe-area-context",
    "react-native-screens",
    "expo-linking",
    "expo-constants",
    "expo-status-bar",
    "react-native-gesture-handler",
]

SUPABASE_PACKAGES: list[str] = [
    "@supabase/supabase-js",
    "@react-native-async-storage/async-storage",
]

ROUTER_ENTRY = "expo-router/entry"

_LEGACY_ENTRY_FILES: tuple[str, ...] = ("App.js", "App.tsx")


def patch_app_json(app_json: dict[str, Any], project_name: str) -> dict[str, Any]:
    """Register the Expo Router plugin and a deep-link scheme.

    The plugin is added once; an existing scheme is left alone.
    """
    expo = dict(app_json.get("expo", {}))
    plugins = list(expo.get("plugins", []))
    if "expo-router" not in plugins:
        plugins.append("expo-router")
    expo["plugins"] = plugins
    expo.setdefault("scheme", f"{slugify(project_name)}-app")
    return {**app_json, "expo": expo}


class MobileGenerator:
    """Steps that create and configure the Expo app."""

    def __init__(self, renderer: TemplateRenderer, runner: ToolRunner, output: Output) -> None:
        self.renderer = renderer
        self.runner = runner
        self.output = output

    async def create_expo_app(self, app_path: Path) -> None:
        """Run ``create-expo-app`` from the parent so it creates *app_path*."""
        await self.runner.run_tool(
            "mobile_generator", app_path.name, "--no-install", cwd=app_path.parent
        )

    async def setup_router(self, app_path: Path, project_name: str) -> None:
        """Convert the generated app to Expo Router."""
        self.output.step("Installing Expo SDK")
        await self.runner.run_tool("package_manager", "add", "expo", cwd=app_path)

        self.output.step("Installing Expo Router dependencies")
        await self.runner.expo_install(ROUTER_PACKAGES, cwd=app_path)

        self.output.step("Configuring package.json entry point")
        await update_manifest(app_path, lambda m: {**m, "main": ROUTER_ENTRY})

        self.output.step("Creating Expo Router screens")
        await self.write_router_files(app_path, project_name)

        app_json_path = app_path / "app.json"
        if app_json_path.is_file():
            self.output.step("Registering router plugin in app.json")
            try:
                app_json = await asyncio.to_thread(load_json, app_json_path)
            except json.JSONDecodeError as exc:
                raise StepError(f"Cannot parse {app_json_path}: {exc}") from exc
            await write_file(app_json_path, dump_json(patch_app_json(app_json, project_name)))

        await self.write_babel_config(app_path, nativewind=False)

        for name in _LEGACY_ENTRY_FILES:
            legacy = app_path / name
            if legacy.exists():
                self.output.step(f"Removing old {name}")
                await asyncio.to_thread(legacy.unlink)

    async def write_router_files(
        self, app_path: Path, project_name: str, nativewind: bool = False
    ) -> list[Path]:
        """Write ``app/_layout.tsx`` and ``app/index.tsx``."""
        context = {"project_name": project_name, "nativewind": nativewind}
        return [
            await self.renderer.render_to_file(
                "mobile/app/_layout.tsx.j2", app_path / "app" / "_layout.tsx", context
            ),
            await self.renderer.render_to_file(
                "mobile/app/index.tsx.j2", app_path / "app" / "index.tsx", context
            ),
        ]

    async def write_babel_config(self, app_path: Path, nativewind: bool) -> Path:
        return await self.renderer.render_to_file(
            "mobile/babel.config.js.j2", app_path / "babel.config.js", {"nativewind": nativewind}
        )

    async def write_metro_config(
        self, app_path: Path, shared_package: str | None, nativewind: bool
    ) -> Path:
        """Write ``metro.config.js``; with *shared_package* it watches the workspace."""
        return await self.renderer.render_to_file(
            "mobile/metro.config.js.j2",
            app_path / "metro.config.js",
            {
                "workspace": shared_package is not None,
                "shared_package": shared_package or "",
                "nativewind": nativewind,
            },
        )

    async def install_supabase_deps(self, app_path: Path) -> None:
        await self.runner.expo_install(SUPABASE_PACKAGES, cwd=app_path)
