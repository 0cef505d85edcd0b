"""Tests for spec editing operations."""

from __future__ import annotations

import pytest

from video_timeline_mcp.models.spec import AudioSegment, VideoSpec
from video_timeline_mcp.models.timeline import IssueKind
from video_timeline_mcp.timeline import editing


@pytest.fixture()
def spec(sample_spec) -> VideoSpec:
    return VideoSpec.from_persisted(sample_spec).with_audio_segments(
        {"scene0_chunk0": AudioSegment(path="a.wav", start=0, end=2)}
    )


class TestSceneEdits:
    def test_remove_scene(self, spec):
        result = editing.remove_scene(spec, 3)
        assert result.accepted
        assert [s.type for s in result.spec.scenes] == ["intro", "skill1", "skill2"]
        assert result.spec.audio_segments is None
        assert len(spec.scenes) == 4

    def test_remove_scene_out_of_range(self, spec):
        result = editing.remove_scene(spec, 9)
        assert not result.accepted
        assert result.report.issues[0].path == "scenes[9]"

    def test_add_overlapping_scene_is_rejected(self, spec):
        result = editing.add_scene(spec, {"type": "extra", "start": 110, "end": 125})
        assert not result.accepted
        assert IssueKind.SCENE_OVERLAP in result.report.kinds
        assert result.spec is None

    def test_add_scene_with_bad_shape_is_rejected_as_value(self, spec):
        result = editing.add_scene(spec, {"type": "outro", "start": 120})
        assert not result.accepted
        assert [(i.kind, i.path) for i in result.report.issues] == [(IssueKind.SCHEMA_INVALID, "scene.end")]

    def test_add_scene_after_removing_last(self, spec):
        trimmed = editing.remove_scene(spec, 3).spec
        result = editing.add_scene(trimmed, {"type": "outro", "start": 105, "end": 118, "narration": ["Bye."]})
        assert result.accepted
        assert result.spec.scenes[-1].type == "outro"

    def test_move_scene_repacks_times(self, spec):
        result = editing.move_scene(spec, 3, 0)
        assert result.accepted
        bounds = [(s.type, s.start, s.end) for s in result.spec.scenes]
        assert bounds == [
            ("summary", 0, 15),
            ("intro", 15, 30),
            ("skill1", 30, 75),
            ("skill2", 75, 120),
        ]
        assert result.spec.audio_segments is None

    def test_move_scene_keeps_event_offsets(self, spec):
        result = editing.move_scene(spec, 0, 3)
        moved = result.spec.scenes[3]
        assert moved.type == "intro"
        assert [e.t for e in moved.events] == [0, 5]


class TestNarrationEdits:
    def test_replace_chunk(self, spec):
        result = editing.edit_narration(spec, 0, 1, "Today we pull things.")
        assert result.accepted
        assert result.spec.scenes[0].narration[1] == "Today we pull things."
        assert result.spec.audio_segments is None
        assert spec.scenes[0].narration[1] == "Today we push things."
        assert spec.audio_segments is not None

    def test_append_chunk(self, spec):
        result = editing.edit_narration(spec, 3, 1, "See you next time.")
        assert result.spec.scenes[3].narration == ["That is all.", "See you next time."]

    def test_chunk_out_of_range(self, spec):
        result = editing.edit_narration(spec, 0, 5, "x")
        assert not result.accepted
        assert result.report.issues[0].path == "scenes[0].narration[5]"

    def test_empty_text_rejected(self, spec):
        assert not editing.edit_narration(spec, 0, 0, "   ").accepted


class TestEventEdits:
    def test_add_event_keeps_audio(self, spec):
        result = editing.add_event(spec, 1, {"t": 20, "action": "fade", "duration": 1})
        assert result.accepted
        assert result.spec.scenes[1].events[-1].action == "fade"
        assert result.spec.audio_segments is not None

    def test_add_event_to_scene_without_events_key(self, sample_spec):
        del sample_spec["scenes"][3]["events"]
        spec = VideoSpec.from_persisted(sample_spec)
        result = editing.add_event(spec, 3, {"t": 2, "action": "fade"})
        assert result.accepted
        assert result.spec.to_persisted()["scenes"][3]["events"] == [{"t": 2.0, "action": "fade"}]

    def test_add_event_negative_offset_rejected(self, spec):
        result = editing.add_event(spec, 1, {"t": -2, "action": "fade"})
        assert not result.accepted
        assert result.report.kinds == [IssueKind.INVALID_EVENT_TIME]

    def test_add_event_with_bad_shape_is_rejected_as_value(self, spec):
        result = editing.add_event(spec, 1, {"t": "soon"})
        assert not result.accepted
        assert set(result.report.kinds) == {IssueKind.SCHEMA_INVALID}
        assert {i.path for i in result.report.issues} == {"event.t", "event.action"}

    def test_remove_event(self, spec):
        result = editing.remove_event(spec, 0, 0)
        assert [e.action for e in result.spec.scenes[0].events] == ["animate_vector_3d"]
        assert len(spec.scenes[0].events) == 2

    def test_remove_event_out_of_range(self, spec):
        result = editing.remove_event(spec, 3, 0)
        assert not result.accepted
        assert result.report.issues[0].path == "scenes[3].events[0]"
