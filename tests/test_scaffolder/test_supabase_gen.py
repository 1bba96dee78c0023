"""Tests for the Supabase steps.

Covers:
- Migration lookup by file-name marker (most recent wins)
- create_migration rewrites exactly the new migration
- config.toml patch: replace, insert, preserve, idempotence
- Environment files, client accessors, middleware and types placeholder
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import tomlkit

from monolaunch.config import ToolConfig
from monolaunch.scaffolder.steps import MigrationNotFoundError, StepError, ToolRunner
from monolaunch.scaffolder.supabase_gen import (
    AUTH_HOOK_URI,
    MOBILE,
    WEB,
    SupabaseGenerator,
    find_latest_migration,
    patch_config_text,
)
from monolaunch.scaffolder.templates import TemplateRenderer

pytestmark = pytest.mark.unit

SITE_URL = "http://localhost:3000"


@pytest.fixture
def supabase(output) -> SupabaseGenerator:
    return SupabaseGenerator(TemplateRenderer(), ToolRunner(ToolConfig(), output))


# ---------------------------------------------------------------------------
# find_latest_migration
# ---------------------------------------------------------------------------


class TestFindLatestMigration:
    def test_picks_most_recent_match(self, tmp_path: Path):
        for name in (
            "20240101000000_initial_setup.sql",
            "20250101000000_initial_setup.sql",
            "20260101000000_other.sql",
        ):
            (tmp_path / name).write_text("", encoding="utf-8")
        found = find_latest_migration(tmp_path, "initial_setup")
        assert found.name == "20250101000000_initial_setup.sql"

    def test_no_match(self, tmp_path: Path):
        (tmp_path / "20250101000000_other.sql").write_text("", encoding="utf-8")
        with pytest.raises(MigrationNotFoundError):
            find_latest_migration(tmp_path, "initial_setup")

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(MigrationNotFoundError):
            find_latest_migration(tmp_path / "missing", "initial_setup")


class TestCreateMigration:
    async def test_rewrites_only_the_new_migration(self, supabase, fake_tools, tmp_path: Path):
        migrations = tmp_path / "supabase" / "migrations"
        migrations.mkdir(parents=True)
        older = migrations / "20000101000000_seed.sql"
        older.write_text("-- seed data\n", encoding="utf-8")

        path = await supabase.create_migration(tmp_path)

        assert path.parent == migrations
        assert path.name.endswith("_initial_setup.sql")
        assert "custom_access_token_hook" in path.read_text(encoding="utf-8")
        assert older.read_text(encoding="utf-8") == "-- seed data\n"
        assert sorted(p.name for p in migrations.iterdir()) == sorted([older.name, path.name])
        assert fake_tools.commands() == ["npx supabase migration new initial_setup"]

    async def test_missing_file_is_lookup_failure(self, supabase, tmp_path: Path):
        # The CLI "succeeds" but writes nothing.
        with patch("monolaunch.scaffolder.steps.run_command", new=AsyncMock(return_value=(0, "", ""))):
            with pytest.raises(MigrationNotFoundError):
                await supabase.create_migration(tmp_path)


# ---------------------------------------------------------------------------
# config.toml patch
# ---------------------------------------------------------------------------


class TestPatchConfigText:
    def test_sets_site_url_and_redirects(self, supabase_config_text):
        doc = tomlkit.parse(patch_config_text(supabase_config_text, SITE_URL))
        assert doc["auth"]["site_url"] == SITE_URL
        assert doc["auth"]["additional_redirect_urls"] == [
            SITE_URL,
            f"{SITE_URL}/api/auth/v1/callback",
        ]

    def test_inserts_hook(self, supabase_config_text):
        doc = tomlkit.parse(patch_config_text(supabase_config_text, SITE_URL))
        hook = doc["auth"]["hook"]["custom_access_token"]
        assert hook["enabled"] is True
        assert hook["uri"] == AUTH_HOOK_URI

    def test_inserted_hook_is_followed_by_blank_line(self, supabase_config_text):
        text = supabase_config_text + "\n[edge_runtime]\nenabled = true\n"
        patched = patch_config_text(text, SITE_URL)
        assert f'uri = "{AUTH_HOOK_URI}"\n\n[edge_runtime]' in patched
        assert tomlkit.parse(patched)["edge_runtime"]["enabled"] is True

    def test_preserves_other_settings_and_comments(self, supabase_config_text):
        patched = patch_config_text(supabase_config_text, SITE_URL)
        doc = tomlkit.parse(patched)
        assert doc["project_id"] == "myapp"
        assert doc["api"]["port"] == 54321
        assert doc["auth"]["jwt_expiry"] == 3600
        assert doc["auth"]["email"]["enable_signup"] is True
        assert "# The base URL of your website." in patched

    def test_replaces_existing_hook(self, supabase_config_text):
        text = supabase_config_text + (
            "\n[auth.hook.custom_access_token]\n"
            "enabled = false\n"
            'uri = "pg-functions://postgres/public/old_hook"\n'
            'secrets = "env(OLD)"\n'
        )
        doc = tomlkit.parse(patch_config_text(text, SITE_URL))
        hook = doc["auth"]["hook"]["custom_access_token"]
        assert dict(hook) == {"enabled": True, "uri": AUTH_HOOK_URI}

    def test_keeps_sibling_hooks(self, supabase_config_text):
        text = supabase_config_text + (
            "\n[auth.hook.send_email]\n"
            "enabled = false\n"
        )
        doc = tomlkit.parse(patch_config_text(text, SITE_URL))
        assert doc["auth"]["hook"]["send_email"]["enabled"] is False
        assert doc["auth"]["hook"]["custom_access_token"]["uri"] == AUTH_HOOK_URI

    def test_creates_missing_auth_table(self):
        doc = tomlkit.parse(patch_config_text('project_id = "x"\n', SITE_URL))
        assert doc["auth"]["site_url"] == SITE_URL
        assert doc["auth"]["hook"]["custom_access_token"]["enabled"] is True

    def test_idempotent(self, supabase_config_text):
        once = patch_config_text(supabase_config_text, SITE_URL)
        assert patch_config_text(once, SITE_URL) == once


class TestPatchConfig:
    async def test_patches_file_in_place(self, supabase_config_text, supabase, tmp_path: Path):
        config = tmp_path / "supabase" / "config.toml"
        config.parent.mkdir()
        config.write_text(supabase_config_text, encoding="utf-8")
        await supabase.patch_config(tmp_path, SITE_URL)
        assert "custom_access_token" in config.read_text(encoding="utf-8")

    async def test_missing_file(self, supabase, tmp_path: Path):
        with pytest.raises(StepError, match="not found"):
            await supabase.patch_config(tmp_path, SITE_URL)

    async def test_invalid_toml(self, supabase, tmp_path: Path):
        config = tmp_path / "supabase" / "config.toml"
        config.parent.mkdir()
        config.write_text("[auth\nsite_url = ", encoding="utf-8")
        with pytest.raises(StepError, match="Cannot parse"):
            await supabase.patch_config(tmp_path, SITE_URL)


# ---------------------------------------------------------------------------
# File-write steps
# ---------------------------------------------------------------------------


class TestFileWrites:
    async def test_web_env_file(self, supabase, tmp_path: Path):
        path = await supabase.write_env_file(tmp_path, WEB)
        content = path.read_text(encoding="utf-8")
        assert path.name == ".env.local"
        for key in (
            "NEXT_PUBLIC_SUPABASE_URL",
            "NEXT_PUBLIC_SUPABASE_ANON_KEY",
            "SUPABASE_SERVICE_ROLE_KEY",
            "DATABASE_URL",
        ):
            assert key in content

    async def test_mobile_env_file(self, supabase, tmp_path: Path):
        path = await supabase.write_env_file(tmp_path, MOBILE)
        content = path.read_text(encoding="utf-8")
        assert path.name == ".env"
        assert "EXPO_PUBLIC_SUPABASE_URL" in content
        assert "EXPO_PUBLIC_SUPABASE_ANON_KEY" in content
        assert "SERVICE_ROLE" not in content

    def test_unknown_kind(self, supabase):
        with pytest.raises(ValueError, match="Unknown app kind"):
            supabase.render_env_file("desktop")

    async def test_web_clients(self, supabase, tmp_path: Path):
        written = await supabase.write_clients(tmp_path, WEB)
        assert sorted(p.name for p in written) == [
            "supabase.ts",
            "supabaseAdminClient.ts",
            "supabaseBrowserClient.ts",
            "supabaseServerClient.ts",
        ]
        assert all(p.parent == tmp_path / "lib" for p in written)

    async def test_mobile_client(self, supabase, tmp_path: Path):
        written = await supabase.write_clients(tmp_path, MOBILE)
        assert written == [tmp_path / "lib" / "supabase.ts"]
        assert "AsyncStorage" in written[0].read_text(encoding="utf-8")

    async def test_middleware_and_types(self, supabase, tmp_path: Path):
        middleware = await supabase.write_middleware(tmp_path)
        types = await supabase.write_types(tmp_path)
        assert middleware == tmp_path / "middleware.ts"
        assert types == tmp_path / "types" / "database.types.ts"
        assert "export type Database" in types.read_text(encoding="utf-8")

    async def test_file_writes_are_idempotent(self, supabase, tmp_path: Path):
        await supabase.write_clients(tmp_path, WEB)
        await supabase.write_env_file(tmp_path, WEB)
        before = {p: p.read_bytes() for p in tmp_path.rglob("*") if p.is_file()}
        await supabase.write_clients(tmp_path, WEB)
        await supabase.write_env_file(tmp_path, WEB)
        after = {p: p.read_bytes() for p in tmp_path.rglob("*") if p.is_file()}
        assert before == after
