"""Tests for package.json script merging."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from monolaunch.scaffolder.manifest import (
    MOBILE_SCRIPTS,
    ROOT_SCRIPTS,
    WEB_SCRIPTS,
    merge_scripts,
    update_manifest,
    update_scripts,
)
from monolaunch.scaffolder.steps import StepError

pytestmark = pytest.mark.unit


def _write_manifest(directory: Path, data: dict) -> Path:
    path = directory / "package.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestMergeScripts:
    def test_replaces_same_named_and_keeps_others(self):
        manifest = {"name": "web", "scripts": {"dev": "old dev", "custom": "echo hi"}}
        merged = merge_scripts(manifest, "web")
        assert merged["scripts"]["dev"] == "next dev"
        assert merged["scripts"]["custom"] == "echo hi"
        assert merged["name"] == "web"

    def test_does_not_mutate_input(self):
        manifest = {"scripts": {"dev": "old"}}
        merge_scripts(manifest, "web")
        assert manifest == {"scripts": {"dev": "old"}}

    def test_manifest_without_scripts(self):
        assert merge_scripts({}, "mobile")["scripts"] == MOBILE_SCRIPTS

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown manifest kind"):
            merge_scripts({}, "desktop")

    def test_script_sets_differ_per_kind(self):
        assert WEB_SCRIPTS["dev"] == "next dev"
        assert MOBILE_SCRIPTS["start"] == "expo start"
        assert ROOT_SCRIPTS["dev"] == "pnpm run --parallel dev"
        assert "db:push" in WEB_SCRIPTS
        assert "android" in MOBILE_SCRIPTS
        assert ROOT_SCRIPTS["supabase:start"].startswith("pnpm --filter ./apps/web")


class TestUpdateManifest:
    async def test_writes_two_space_json(self, tmp_path: Path):
        path = _write_manifest(tmp_path, {"name": "x", "scripts": {}})
        await update_scripts(tmp_path, "web")
        text = path.read_text(encoding="utf-8")
        assert text.startswith('{\n  "name": "x",')
        assert text.endswith("}\n")
        assert json.loads(text)["scripts"]["build"] == "next build"

    async def test_idempotent(self, tmp_path: Path):
        path = _write_manifest(tmp_path, {"name": "x"})
        await update_scripts(tmp_path, "root")
        first = path.read_bytes()
        await update_scripts(tmp_path, "root")
        assert path.read_bytes() == first

    async def test_custom_mutation(self, tmp_path: Path):
        path = _write_manifest(tmp_path, {"name": "x"})
        await update_manifest(tmp_path, lambda m: {**m, "main": "expo-router/entry"})
        assert json.loads(path.read_text(encoding="utf-8"))["main"] == "expo-router/entry"

    async def test_missing_manifest(self, tmp_path: Path):
        with pytest.raises(StepError, match="package.json not found"):
            await update_scripts(tmp_path, "web")

    async def test_invalid_manifest(self, tmp_path: Path):
        (tmp_path / "package.json").write_text("{oops", encoding="utf-8")
        with pytest.raises(StepError, match="Invalid JSON"):
            await update_scripts(tmp_path, "web")
