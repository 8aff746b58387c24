import logging
from pathlib import Path

import pytest

from videoprocessor.errors import TranscodeFailed, UnsupportedOperation
from videoprocessor.operations import Operation
from videoprocessor.pipeline import PipelineState, run_pipeline, run_single, sort_operations
from videoprocessor.workspace import WorkingArea


def test_sort_is_stable_for_ties() -> None:
    ops = [
        Operation("crop", {}, 1),
        Operation("trim", {}, 0),
        Operation("brightness-adjust", {}, 1),
        Operation("style-filter", {}, 1),
    ]
    assert [op.kind for op in sort_operations(ops)] == ["trim", "crop", "brightness-adjust", "style-filter"]


def test_pipeline_state_advance_keeps_original() -> None:
    state = PipelineState.start(Path("/a.mp4")).advance(Path("/b.mp4"))
    assert state.current_input_path == Path("/b.mp4")
    assert state.original_input_path == Path("/a.mp4")


def test_batch_runs_in_ascending_order_on_previous_output(tmp_path: Path, source_video: Path, fake_invoker) -> None:
    ops = [
        Operation("crop", {"width": 640, "height": 360}, 2),
        Operation("speed-adjust", {"speed": 2}, 1),
    ]
    with WorkingArea(tmp_path / "areas") as area:
        result = run_pipeline(source_video, ops, area, invoke=fake_invoker)

        first, second = fake_invoker.calls
        assert "setpts=0.5*PTS" in first.args
        assert "crop=640:360:0:0" in second.args
        assert first.input_path == source_video
        assert second.input_path == first.output_path
        assert result.output_path == second.output_path
        assert [s.kind for s in result.steps] == ["speed-adjust", "crop"]


def test_swapping_order_reverses_execution(tmp_path: Path, source_video: Path, invoker_factory) -> None:
    a = {"brightness": 10}
    b = {"filter": "vintage"}
    forward = invoker_factory()
    backward = invoker_factory()
    with WorkingArea(tmp_path) as area:
        run_pipeline(source_video, [Operation("brightness-adjust", a, 1), Operation("style-filter", b, 2)], area, invoke=forward)
        run_pipeline(source_video, [Operation("brightness-adjust", a, 2), Operation("style-filter", b, 1)], area, invoke=backward)
    assert forward.filters() == list(reversed(backward.filters()))


def test_ties_follow_input_order(tmp_path: Path, source_video: Path, fake_invoker) -> None:
    ops = [
        Operation("style-filter", {"filter": "vintage"}, 5),
        Operation("brightness-adjust", {"brightness": 20}, 5),
        Operation("crop", {}, 5),
    ]
    with WorkingArea(tmp_path) as area:
        run_pipeline(source_video, ops, area, invoke=fake_invoker)
    filters = fake_invoker.filters()
    assert filters[0].startswith("eq=contrast=0.9")
    assert filters[1] == "eq=brightness=0.2"
    assert filters[2] == "crop=1920:1080:0:0"


def test_only_final_output_survives_a_batch(tmp_path: Path, source_video: Path, fake_invoker) -> None:
    ops = [Operation("brightness-adjust", {"brightness": i}, i) for i in range(4)]
    with WorkingArea(tmp_path / "areas") as area:
        result = run_pipeline(source_video, ops, area, invoke=fake_invoker)
        assert len(fake_invoker.calls) == 4
        assert area.files() == [result.output_path]
    assert source_video.read_bytes() == b"source"


def test_failure_stops_later_steps(tmp_path: Path, source_video: Path, invoker_factory) -> None:
    invoker = invoker_factory(fail_on=2, stderr="bad filter")
    ops = [Operation("trim", {"startTime": 1}, 1), Operation("crop", {}, 2), Operation("speed-adjust", {}, 3)]
    with WorkingArea(tmp_path / "areas") as area:
        root = area.path
        with pytest.raises(TranscodeFailed) as exc:
            run_pipeline(source_video, ops, area, invoke=invoker)
        assert len(invoker.calls) == 2
        assert str(exc.value) == "FFmpeg failed: bad filter"
    assert not root.exists()
    assert source_video.exists()


def test_unsupported_step_aborts_without_creating_files(tmp_path: Path, source_video: Path, fake_invoker) -> None:
    ops = [Operation("trim", {}, 1), Operation("explode", {}, 2), Operation("crop", {}, 3)]
    with WorkingArea(tmp_path / "areas") as area:
        with pytest.raises(UnsupportedOperation):
            run_pipeline(source_video, ops, area, invoke=fake_invoker)
        assert len(fake_invoker.calls) == 1
        assert area.files() == [fake_invoker.calls[0].output_path]


def test_empty_batch_returns_source(tmp_path: Path, source_video: Path, fake_invoker) -> None:
    with WorkingArea(tmp_path) as area:
        result = run_pipeline(source_video, [], area, invoke=fake_invoker)
    assert result.output_path == source_video
    assert result.steps == []
    assert fake_invoker.calls == []


def test_run_single_keeps_source(tmp_path: Path, source_video: Path, fake_invoker) -> None:
    with WorkingArea(tmp_path / "areas") as area:
        result = run_single(source_video, "addText", {"text": "hi"}, area, invoke=fake_invoker)
        assert result.output_path.exists()
        assert result.steps[0].kind == "text-overlay"
        assert result.elapsed_seconds == pytest.approx(0.01)
    assert source_video.exists()


def test_undeletable_intermediates_do_not_abort_batch(
    tmp_path: Path, source_video: Path, fake_invoker, monkeypatch, caplog
) -> None:
    real_unlink = Path.unlink

    def locked_unlink(self, *args, **kwargs):
        if self.name.startswith("output_"):
            raise PermissionError(13, "Permission denied", str(self))
        return real_unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", locked_unlink)
    ops = [Operation("trim", {"startTime": 1}, 1), Operation("crop", {}, 2), Operation("speed-adjust", {}, 3)]
    with caplog.at_level(logging.WARNING, logger="videoprocessor.workspace"):
        with WorkingArea(tmp_path / "areas") as area:
            result = run_pipeline(source_video, ops, area, invoke=fake_invoker)
            assert len(fake_invoker.calls) == 3
            assert result.output_path == fake_invoker.calls[-1].output_path
            assert result.output_path.exists()
            assert len(area.files()) == 3

    warnings = [r for r in caplog.records if "failed to remove intermediate" in r.getMessage()]
    assert len(warnings) == 2
    assert source_video.exists()
