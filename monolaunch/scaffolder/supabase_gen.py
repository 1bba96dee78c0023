"""Supabase wiring for generated apps.

Covers everything that touches the backend-as-a-service project of a web
or mobile app: ``supabase init``, environment templates, typed client
accessors, the Next.js session middleware, the database types placeholder,
the initial migration and the ``supabase/config.toml`` auth patch.

The config patch parses the TOML document with ``tomlkit`` and edits keys by
name, so comments and settings the Supabase CLI adds in future releases are
preserved.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import Table

from .steps import MigrationNotFoundError, StepError, ToolRunner, write_file
from .templates import TemplateRenderer

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

WEB = "web"
MOBILE = "mobile"

ENV_FILES: dict[str, str] = {
    WEB: ".env.local",
    MOBILE: ".env",
}

WEB_CLIENT_FILES: tuple[str, ...] = (
    "supabaseAdminClient.ts",
    "supabaseBrowserClient.ts",
    "supabaseServerClient.ts",
    "supabase.ts",
)

DB_TYPES_COMMAND = "pnpm run db:types"

AUTH_HOOK_URI = "pg-functions://postgres/public/custom_access_token_hook"
CALLBACK_PATH = "/api/auth/v1/callback"


def _check_kind(kind: str) -> None:
    if kind not in ENV_FILES:
        raise ValueError(f"Unknown app kind: {kind!r} (expected 'web' or 'mobile')")


# ---------------------------------------------------------------------------
# Migration lookup
# ---------------------------------------------------------------------------


def find_latest_migration(migrations_dir: Path, marker: str) -> Path:
    """Return the most recent migration whose file name contains ``<marker>.sql``.

    The Supabase CLI prefixes migrations with a UTC timestamp, so the
    lexicographically greatest name is the newest.

    Raises:
        MigrationNotFoundError: If the directory is missing or nothing matches.
    """
    needle = f"{marker}.sql"
    if not migrations_dir.is_dir():
        raise MigrationNotFoundError(migrations_dir, needle)
    matches = sorted(
        p for p in migrations_dir.iterdir() if p.is_file() and needle in p.name
    )
    if not matches:
        raise MigrationNotFoundError(migrations_dir, needle)
    return matches[-1]


# ---------------------------------------------------------------------------
# config.toml patch
# ---------------------------------------------------------------------------


def patch_config_text(text: str, site_url: str) -> str:
    """Apply the auth settings to the text of a ``config.toml`` document.

    * ``auth.site_url`` is set to *site_url*;
    * ``auth.additional_redirect_urls`` is replaced or inserted;
    * ``[auth.hook.custom_access_token]`` is replaced or inserted.

    A missing ``[auth]`` table is created.  Everything else, comments
    included, is left as it was.  Applying the patch twice gives the same
    text as applying it once.
    """
    doc = tomlkit.parse(text)
    redirect_urls = [site_url, f"{site_url}{CALLBACK_PATH}"]

    auth = doc.get("auth")
    if auth is None:
        auth = tomlkit.table()
        auth.add("site_url", site_url)
        auth.add("additional_redirect_urls", redirect_urls)
        auth.add("hook", _hook_table())
        doc["auth"] = auth
        return tomlkit.dumps(doc)

    auth["site_url"] = site_url
    auth["additional_redirect_urls"] = redirect_urls

    hook = auth.get("hook")
    if hook is None:
        auth["hook"] = _hook_table()
        return tomlkit.dumps(doc)

    token_hook = hook.get("custom_access_token")
    if token_hook is None:
        hook["custom_access_token"] = _access_token_table()
    else:
        # Edit in place so surrounding whitespace and comments survive.
        for key in [k for k in token_hook if k not in ("enabled", "uri")]:
            del token_hook[key]
        token_hook["enabled"] = True
        token_hook["uri"] = AUTH_HOOK_URI

    return tomlkit.dumps(doc)


def _access_token_table() -> Table:
    table = tomlkit.table()
    table.add("enabled", True)
    table.add("uri", AUTH_HOOK_URI)
    table.add(tomlkit.nl())
    return table


def _hook_table() -> Table:
    hook = tomlkit.table(is_super_table=True)
    hook.add("custom_access_token", _access_token_table())
    return hook


# ---------------------------------------------------------------------------
# SupabaseGenerator
# ---------------------------------------------------------------------------


class SupabaseGenerator:
    """Generates and patches the Supabase side of a web or mobile app."""

    def __init__(self, renderer: TemplateRenderer, runner: ToolRunner) -> None:
        self.renderer = renderer
        self.runner = runner

    # -- Subprocess steps ----------------------------------------------------

    async def init_project(self, app_path: Path) -> None:
        """``supabase init`` inside *app_path*."""
        await self.runner.run_tool("supabase", "init", cwd=app_path)

    async def create_migration(self, app_path: Path) -> Path:
        """Author the initial migration and replace its body with the schema.

        Runs ``supabase migration new <name>``, locates the file the CLI just
        created, then overwrites it.  No other file in the migrations
        directory is touched.
        """
        name = self.runner.tools.migration_name
        await self.runner.run_tool("supabase", "migration", "new", name, cwd=app_path)
        migration = find_latest_migration(app_path / "supabase" / "migrations", name)
        await write_file(migration, self.render_migration())
        return migration

    # -- File-write steps ----------------------------------------------------

    def render_migration(self) -> str:
        return self.renderer.render("supabase/initial_setup.sql.j2")

    def render_env_file(self, kind: str) -> str:
        _check_kind(kind)
        return self.renderer.render(f"supabase/env.{kind}.j2")

    async def write_env_file(self, app_path: Path, kind: str) -> Path:
        """Write ``.env.local`` (web) or ``.env`` (mobile) with placeholder keys."""
        return await write_file(app_path / ENV_FILES[kind], self.render_env_file(kind))

    async def write_clients(self, app_path: Path, kind: str) -> list[Path]:
        """Write the typed Supabase client accessors under ``lib/``.

        Web apps get admin, browser and server clients plus a shared browser
        instance; mobile apps get one AsyncStorage-backed client.
        """
        _check_kind(kind)
        if kind == MOBILE:
            path = await self.renderer.render_to_file(
                "mobile/lib/supabase.ts.j2", app_path / "lib" / "supabase.ts"
            )
            return [path]
        return await self.renderer.render_tree("web/lib", app_path / "lib")

    async def write_middleware(self, app_path: Path) -> Path:
        return await self.renderer.render_to_file(
            "web/middleware.ts.j2", app_path / "middleware.ts"
        )

    async def write_types(self, app_path: Path) -> Path:
        """Write the ``types/database.types.ts`` placeholder."""
        return await self.renderer.render_to_file(
            "supabase/database.types.ts.j2",
            app_path / "types" / "database.types.ts",
            {"db_types_command": DB_TYPES_COMMAND},
        )

    async def patch_config(self, app_path: Path, site_url: str) -> Path:
        """Patch ``supabase/config.toml`` in place.

        Raises:
            StepError: If the file is missing or is not valid TOML.
        """
        config_path = app_path / "supabase" / "config.toml"
        if not config_path.is_file():
            raise StepError(f"Supabase config not found: {config_path}")
        text = await asyncio.to_thread(config_path.read_text, encoding="utf-8")
        try:
            patched = patch_config_text(text, site_url)
        except TOMLKitError as exc:
            raise StepError(f"Cannot parse {config_path}: {exc}") from exc
        return await write_file(config_path, patched)
