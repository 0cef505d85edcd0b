"""Tests for the project tools."""

from __future__ import annotations

import json

import pytest

import video_timeline_mcp.tools.project as project_mod
from tests.conftest import unwrap_tool

project_save = unwrap_tool(project_mod.project_save)
project_load = unwrap_tool(project_mod.project_load)
project_list = unwrap_tool(project_mod.project_list)
project_delete = unwrap_tool(project_mod.project_delete)
project_export = unwrap_tool(project_mod.project_export)
project_import = unwrap_tool(project_mod.project_import)


def _with_audio(spec: dict) -> dict:
    spec["audioSegments"] = {"scene0_chunk0": {"path": "/audio/a.wav", "start": 0.0, "end": 2.0}}
    return spec


class TestSaveLoad:
    @pytest.mark.asyncio
    async def test_round_trip_keeps_audio_map(self, sample_spec):
        saved = await project_save("forces", _with_audio(sample_spec))
        assert saved["scenes"] == 4
        assert saved["has_audio"] is True

        loaded = await project_load("forces")
        assert loaded["spec"]["durationTarget"] == 120
        assert loaded["spec"]["audioSegments"]["scene0_chunk0"]["end"] == 2.0

    @pytest.mark.asyncio
    async def test_resave_keeps_created_at(self, sample_spec):
        first = await project_save("forces", sample_spec)
        second = await project_save("forces", sample_spec)
        assert second["created_at"] == first["created_at"]
        assert second["updated_at"] >= first["updated_at"]

    @pytest.mark.asyncio
    async def test_invalid_spec_not_saved(self, sample_spec):
        sample_spec["scenes"][3]["end"] = 200
        out = await project_save("forces", sample_spec)
        assert out["category"] == "SPEC_INVALID"
        assert (await project_list())["count"] == 0

    @pytest.mark.asyncio
    async def test_load_missing(self):
        out = await project_load("ghost")
        assert out["category"] == "PROJECT_NOT_FOUND"


class TestListDelete:
    @pytest.mark.asyncio
    async def test_list_and_delete(self, sample_spec):
        await project_save("a", sample_spec)
        await project_save("b", _with_audio(sample_spec))

        listed = await project_list()
        assert listed["count"] == 2
        assert {p["name"]: p["has_audio"] for p in listed["projects"]} == {"a": False, "b": True}

        assert await project_delete("a") == {"name": "a", "deleted": True}
        assert await project_delete("a") == {"name": "a", "deleted": False}
        assert (await project_list())["count"] == 1


class TestExportImport:
    @pytest.mark.asyncio
    async def test_export_then_import_under_new_name(self, sample_spec, tmp_path):
        await project_save("Forces Intro", _with_audio(sample_spec))

        exported = await project_export("Forces Intro", output_dir=str(tmp_path / "share"))
        assert exported["path"].endswith("forces-intro.synapvid.json")
        data = json.loads((tmp_path / "share" / "forces-intro.synapvid.json").read_text())
        assert data["projectName"] == "Forces Intro"
        assert data["version"] == "1.0.0"
        assert "audioSegments" not in data["videoSpec"]

        imported = await project_import(exported["path"], name="copy")
        assert imported["name"] == "copy"
        assert imported["has_audio"] is True
        loaded = await project_load("copy")
        assert loaded["spec"]["scenes"] == (await project_load("Forces Intro"))["spec"]["scenes"]

    @pytest.mark.asyncio
    async def test_import_uses_file_project_name(self, sample_spec, tmp_path):
        path = tmp_path / "x.synapvid.json"
        path.write_text(json.dumps({"videoSpec": sample_spec, "projectName": "From File"}))
        out = await project_import(str(path))
        assert out["name"] == "From File"

    @pytest.mark.asyncio
    async def test_import_missing_file(self, tmp_path):
        out = await project_import(str(tmp_path / "nope.synapvid.json"))
        assert out["category"] == "FILE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_import_without_video_spec(self, tmp_path):
        path = tmp_path / "bad.synapvid.json"
        path.write_text(json.dumps({"projectName": "x"}))
        out = await project_import(str(path))
        assert "has no videoSpec" in out["error"]

    @pytest.mark.asyncio
    async def test_import_rejects_invalid_spec(self, sample_spec, tmp_path):
        sample_spec["durationTarget"] = 20
        path = tmp_path / "bad.synapvid.json"
        path.write_text(json.dumps({"videoSpec": sample_spec}))
        out = await project_import(str(path))
        assert out["category"] == "SPEC_INVALID"
        assert (await project_list())["count"] == 0

    @pytest.mark.asyncio
    async def test_export_missing_project(self, tmp_path):
        out = await project_export("ghost", output_dir=str(tmp_path))
        assert out["category"] == "PROJECT_NOT_FOUND"
