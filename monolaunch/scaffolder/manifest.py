"""``package.json`` manipulation.

Manifests are read as JSON, mutated, and written back with 2-space
indentation.  The script sets below are merged over whatever scripts the
generator tools left behind: existing entries with the same name are
replaced, unrelated entries are kept.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from monolaunch.utils import dump_json, load_json

from .steps import StepError, write_file

_SUPABASE_SCRIPTS: dict[str, str] = {
    "db:types": "npx supabase gen types typescript --local > types/database.types.ts",
    "db:reset": "npx supabase db reset",
    "db:migrate": "npx supabase migration new",
    "supabase:start": "npx supabase start",
    "supabase:stop": "npx supabase stop",
    "supabase:status": "npx supabase status",
}

WEB_SCRIPTS: dict[str, str] = {
    "dev": "next dev",
    "build": "next build",
    "start": "next start",
    "lint": "next lint",
    "type-check": "tsc --noEmit",
    "test": "jest",
    "test:watch": "jest --watch",
    **_SUPABASE_SCRIPTS,
    "db:push": "npx supabase db push",
}

MOBILE_SCRIPTS: dict[str, str] = {
    "start": "expo start",
    "android": "expo run:android",
    "ios": "expo run:ios",
    "web": "expo start --web",
    "prebuild": "expo prebuild",
    "prebuild:clean": "expo prebuild --clean",
    "test": "jest",
    "lint": "eslint . --ext .js,.jsx,.ts,.tsx",
    "type-check": "tsc --noEmit",
    **_SUPABASE_SCRIPTS,
}

ROOT_SCRIPTS: dict[str, str] = {
    "dev": "pnpm run --parallel dev",
    "build": "pnpm run --recursive build",
    "start": "pnpm run --recursive start",
    "lint": "pnpm run --recursive lint",
    "type-check": "pnpm run --recursive type-check",
    "test": "pnpm run --recursive test",
    "db:types": "pnpm --filter ./apps/web run db:types && pnpm --filter ./apps/mobile run db:types",
    "db:reset": "pnpm --filter ./apps/web run db:reset",
    "db:migrate": "pnpm --filter ./apps/web run db:migrate",
    "supabase:start": "pnpm --filter ./apps/web run supabase:start",
    "supabase:stop": "pnpm --filter ./apps/web run supabase:stop",
    "supabase:status": "pnpm --filter ./apps/web run supabase:status",
}

SCRIPT_SETS: dict[str, dict[str, str]] = {
    "web": WEB_SCRIPTS,
    "mobile": MOBILE_SCRIPTS,
    "root": ROOT_SCRIPTS,
}


def merge_scripts(manifest: dict[str, Any], kind: str) -> dict[str, Any]:
    """Return a copy of *manifest* with the *kind* script set merged in."""
    try:
        scripts = SCRIPT_SETS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown manifest kind: {kind!r} (expected one of {', '.join(SCRIPT_SETS)})"
        ) from None
    merged = dict(manifest)
    merged["scripts"] = {**manifest.get("scripts", {}), **scripts}
    return merged


async def update_manifest(
    package_dir: Path, mutate: Callable[[dict[str, Any]], dict[str, Any]]
) -> Path:
    """Read ``package.json`` in *package_dir*, apply *mutate*, write it back.

    Raises:
        StepError: If the manifest is missing or is not valid JSON.
    """
    path = package_dir / "package.json"
    if not path.is_file():
        raise StepError(f"package.json not found in {package_dir}")
    try:
        manifest = await asyncio.to_thread(load_json, path)
    except json.JSONDecodeError as exc:
        raise StepError(f"Invalid JSON in {path}: {exc}") from exc
    return await write_file(path, dump_json(mutate(manifest)))


async def update_scripts(package_dir: Path, kind: str) -> Path:
    """Merge the script shortcuts for *kind* (``web``, ``mobile`` or ``root``)."""
    return await update_manifest(package_dir, lambda m: merge_scripts(m, kind))
