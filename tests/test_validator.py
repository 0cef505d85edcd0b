"""Tests for spec validation."""

from __future__ import annotations

import json

import pytest

from video_timeline_mcp.models.spec import VideoSpec
from video_timeline_mcp.models.timeline import IssueKind
from video_timeline_mcp.timeline.validator import validate_spec


def _spec(target=120, scenes=None):
    return {
        "durationTarget": target,
        "scenes": scenes if scenes is not None else [
            {"type": "intro", "start": 0, "end": 60, "narration": ["a"]},
            {"type": "summary", "start": 60, "end": 120, "narration": ["b"]},
        ],
        "style": {"colors": {"primary": "#000"}},
    }


class TestValidSpecs:
    def test_sample_spec_is_valid(self, sample_spec):
        report = validate_spec(sample_spec)
        assert report.valid
        assert report.issues == []
        assert isinstance(report.spec, VideoSpec)

    def test_accepts_model_instance(self, sample_spec):
        assert validate_spec(VideoSpec.from_persisted(sample_spec)).valid

    @pytest.mark.parametrize("target", [80, 180])
    def test_duration_bounds_are_inclusive(self, target):
        scenes = [{"type": "intro", "start": 0, "end": target}]
        assert validate_spec(_spec(target, scenes)).valid

    def test_last_scene_may_end_within_buffer(self):
        scenes = [{"type": "intro", "start": 0, "end": 125}]
        assert validate_spec(_spec(120, scenes)).valid

    def test_touching_scenes_do_not_overlap(self):
        assert validate_spec(_spec()).valid


class TestInvalidSpecs:
    def test_duration_target_too_short(self):
        report = validate_spec(_spec(50, [{"type": "intro", "start": 0, "end": 50}]))
        assert not report.valid
        assert report.kinds == [IssueKind.DURATION_OUT_OF_RANGE]
        assert report.issues[0].path == "durationTarget"

    def test_duration_target_too_long(self):
        report = validate_spec(_spec(200, [{"type": "intro", "start": 0, "end": 200}]))
        assert IssueKind.DURATION_OUT_OF_RANGE in report.kinds

    def test_no_scenes(self):
        report = validate_spec(_spec(scenes=[]))
        assert report.kinds == [IssueKind.NO_SCENES]

    def test_scene_end_before_start(self):
        scenes = [
            {"type": "intro", "start": 0, "end": 60},
            {"type": "summary", "start": 90, "end": 90},
        ]
        report = validate_spec(_spec(scenes=scenes))
        assert report.kinds == [IssueKind.INVALID_SCENE_BOUNDS]
        assert report.issues[0].path == "scenes[1].end"
        assert report.issues[0].scene_index == 1

    def test_overlapping_scenes_name_both(self):
        scenes = [
            {"type": "intro", "start": 0, "end": 20},
            {"type": "skill1", "start": 15, "end": 60},
            {"type": "summary", "start": 60, "end": 120},
        ]
        report = validate_spec(_spec(scenes=scenes))
        assert report.kinds == [IssueKind.SCENE_OVERLAP]
        issue = report.issues[0]
        assert (issue.scene_index, issue.other_scene_index) == (0, 1)
        assert issue.path == "scenes[1].start"

    def test_overlap_detected_regardless_of_list_order(self):
        scenes = [
            {"type": "summary", "start": 60, "end": 120},
            {"type": "intro", "start": 0, "end": 70},
        ]
        report = validate_spec(_spec(scenes=scenes))
        assert IssueKind.SCENE_OVERLAP in report.kinds

    def test_last_scene_past_target_plus_buffer(self):
        scenes = [{"type": "intro", "start": 0, "end": 126}]
        report = validate_spec(_spec(120, scenes))
        assert report.kinds == [IssueKind.DURATION_MISMATCH]
        assert report.issues[0].path == "scenes[0].end"

    def test_negative_event_offset(self):
        scenes = [{"type": "intro", "start": 0, "end": 120, "events": [{"t": -1, "action": "fade"}]}]
        report = validate_spec(_spec(scenes=scenes))
        assert report.kinds == [IssueKind.INVALID_EVENT_TIME]
        assert report.issues[0].path == "scenes[0].events[0].t"

    def test_zero_event_duration(self):
        scenes = [{"type": "intro", "start": 0, "end": 120, "events": [{"t": 1, "action": "fade", "duration": 0}]}]
        report = validate_spec(_spec(scenes=scenes))
        assert report.kinds == [IssueKind.INVALID_EVENT_DURATION]

    def test_nan_bounds_and_event_fields_are_rejected(self):
        nan = float("nan")
        scenes = [{"type": "intro", "start": nan, "end": nan, "events": [{"t": nan, "action": "fade", "duration": nan}]}]
        report = validate_spec(_spec(scenes=scenes))
        assert not report.valid
        assert IssueKind.INVALID_SCENE_BOUNDS in report.kinds
        assert IssueKind.INVALID_EVENT_TIME in report.kinds
        assert IssueKind.INVALID_EVENT_DURATION in report.kinds

    def test_nan_literal_in_json_payload_is_rejected(self):
        payload = json.loads(
            '{"durationTarget": 120, "style": {"colors": {"primary": "#000"}},'
            ' "scenes": [{"type": "intro", "start": NaN, "end": NaN}]}'
        )
        report = validate_spec(payload)
        assert not report.valid
        assert report.issues[0].path == "scenes[0].end"

    @pytest.mark.parametrize("target", [float("nan"), float("inf")])
    def test_non_finite_duration_target(self, target):
        report = validate_spec(_spec(target=target))
        assert IssueKind.DURATION_OUT_OF_RANGE in report.kinds

    def test_infinite_scene_end(self):
        scenes = [{"type": "intro", "start": 0, "end": float("inf")}]
        report = validate_spec(_spec(scenes=scenes))
        assert IssueKind.INVALID_SCENE_BOUNDS in report.kinds

    def test_collects_all_issues_by_default(self):
        scenes = [
            {"type": "intro", "start": 0, "end": 20},
            {"type": "skill1", "start": 10, "end": 200},
        ]
        report = validate_spec(_spec(50, scenes))
        assert report.kinds == [
            IssueKind.DURATION_OUT_OF_RANGE,
            IssueKind.SCENE_OVERLAP,
            IssueKind.DURATION_MISMATCH,
        ]

    def test_fail_fast_stops_at_first(self):
        scenes = [
            {"type": "intro", "start": 0, "end": 20},
            {"type": "skill1", "start": 10, "end": 200},
        ]
        report = validate_spec(_spec(50, scenes), fail_fast=True)
        assert report.kinds == [IssueKind.DURATION_OUT_OF_RANGE]

    def test_schema_errors_have_paths(self):
        payload = _spec()
        del payload["style"]
        payload["scenes"][0]["start"] = "soon"
        report = validate_spec(payload)
        assert not report.valid
        assert report.spec is None
        assert {i.kind for i in report.issues} == {IssueKind.SCHEMA_INVALID}
        paths = {i.path for i in report.issues}
        assert "style" in paths
        assert "scenes[0].start" in paths

    def test_report_keeps_parsed_spec_when_rules_fail(self):
        report = validate_spec(_spec(50, [{"type": "intro", "start": 0, "end": 50}]))
        assert report.spec is not None
        assert report.spec.duration_target == 50
