"""Tests for the per-file unit of work."""

import asyncio

import pytest

from tests.fakes import (
    FakeEvaluator,
    FakeExtractor,
    FakeGenerator,
    FakeTranscriber,
    make_collaborators,
    run,
    total_calls,
    touch_videos,
)
from vidscribe.models.schemas import NO_AUDIO, Candidate, ProcessingRecord, ProcessingStage
from vidscribe.services.pipeline import FileProcessingError, FileProcessor


def _processor(tmp_path, collaborators, cancel_event=None) -> FileProcessor:
    return FileProcessor(collaborators, tmp_path / ".tmp", 300.0, cancel_event)


def _transcribed(key: str, ordinals=(), best=0) -> ProcessingRecord:
    return ProcessingRecord(
        source_path=key,
        audio_asset_path=".tmp/clip_1.wav",
        transcript="existing transcript",
        candidates=[Candidate(ordinal=o, text=f"old {o}") for o in ordinals],
        best_candidate_ordinal=best,
    )


class TestFreshFile:
    def test_runs_every_stage(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        collaborators = make_collaborators(evaluator=FakeEvaluator(choice=2))

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 3))

        assert record.transcript == "hello from the video"
        assert [c.ordinal for c in record.candidates] == [1, 2, 3]
        assert record.best_candidate_ordinal == 2
        assert record.audio_asset_path.startswith(f"{(tmp_path / '.tmp').as_posix()}/clip_")
        assert record.audio_asset_path.endswith(".wav")

        (audio_in, duration) = collaborators.transcriber.calls[0]
        assert audio_in == collaborators.extractor.calls[0][1]
        assert duration == 300.0
        assert collaborators.generator.calls == [("hello from the video", "clip.mp4", 3)]
        assert len(collaborators.evaluator.calls[0][0]) == 3

    def test_no_audio(self, tmp_path):
        (video,) = touch_videos(tmp_path, "silent.mp4")
        collaborators = make_collaborators(extractor=FakeExtractor(silent={"silent.mp4"}))

        record = run(_processor(tmp_path, collaborators).process(video, "silent.mp4", 3))

        assert record.audio_asset_path == NO_AUDIO
        assert record.transcript == ""
        assert record.candidates == []
        assert collaborators.transcriber.calls == []
        assert collaborators.generator.calls == []

    def test_empty_transcript_is_an_error(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        collaborators = make_collaborators(transcriber=FakeTranscriber(text="   "))

        with pytest.raises(FileProcessingError) as exc_info:
            run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 3))

        assert exc_info.value.stage == ProcessingStage.TRANSCRIPTION
        assert collaborators.generator.calls == []


class TestResume:
    def test_terminal_record_is_returned_unchanged(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4", [1, 2, 3], best=1)
        collaborators = make_collaborators()

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 3, existing))

        assert record is existing
        assert total_calls(collaborators) == 0

    def test_above_target_keeps_best(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4", [1, 2, 3, 4], best=4)
        collaborators = make_collaborators()

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 2, existing))

        assert record.best_candidate_ordinal == 4
        assert total_calls(collaborators) == 0

    def test_no_audio_is_terminal_for_any_target(self, tmp_path):
        (video,) = touch_videos(tmp_path, "silent.mp4")
        existing = ProcessingRecord(source_path="silent.mp4", audio_asset_path=NO_AUDIO)
        collaborators = make_collaborators()

        record = run(_processor(tmp_path, collaborators).process(video, "silent.mp4", 10, existing))

        assert record is existing
        assert total_calls(collaborators) == 0

    def test_existing_transcript_skips_extraction(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4")
        collaborators = make_collaborators()

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 2, existing))

        assert collaborators.extractor.calls == []
        assert collaborators.transcriber.calls == []
        assert collaborators.generator.calls == [("existing transcript", "clip.mp4", 2)]
        assert [c.ordinal for c in record.candidates] == [1, 2]

    def test_partial_target_appends_after_max_ordinal(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4", [1, 2], best=2)
        collaborators = make_collaborators(evaluator=FakeEvaluator(choice=3))

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 3, existing))

        assert collaborators.generator.calls == [("existing transcript", "clip.mp4", 1)]
        assert [c.ordinal for c in record.candidates] == [1, 2, 3]
        assert [c.text for c in record.candidates][:2] == ["old 1", "old 2"]
        assert collaborators.evaluator.calls[0][0] == ["old 1", "old 2", "clip.mp4 #1"]
        assert record.best_candidate_ordinal == 3
        # Input record is not mutated
        assert len(existing.candidates) == 2

    def test_unranked_full_record_is_only_evaluated(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4", [1, 2])
        collaborators = make_collaborators(evaluator=FakeEvaluator(choice=2))

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 2, existing))

        assert collaborators.extractor.calls == []
        assert collaborators.transcriber.calls == []
        assert collaborators.generator.calls == []
        assert collaborators.evaluator.calls[0][0] == ["old 1", "old 2"]
        assert record.best_candidate_ordinal == 2
        assert record.is_terminal(2)

    def test_unranked_record_above_target_is_evaluated(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4", [1, 2, 3])
        collaborators = make_collaborators(evaluator=FakeEvaluator(choice=3))

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 2, existing))

        assert collaborators.generator.calls == []
        assert len(collaborators.evaluator.calls) == 1
        assert record.best_candidate_ordinal == 3

    def test_evaluator_index_maps_to_ordinal_across_gaps(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4", [2, 5], best=5)
        collaborators = make_collaborators(evaluator=FakeEvaluator(choice=3))

        record = run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 3, existing))

        assert [c.ordinal for c in record.candidates] == [2, 5, 6]
        assert record.best_candidate_ordinal == 6


class TestFailures:
    def test_extraction_failure_on_new_file_has_no_partial(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        collaborators = make_collaborators(extractor=FakeExtractor(fail={"clip.mp4"}))

        with pytest.raises(FileProcessingError) as exc_info:
            run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 3))

        error = exc_info.value
        assert error.stage == ProcessingStage.EXTRACTION
        assert error.partial is None
        assert str(error).startswith("[extraction] clip.mp4: ")

    def test_generation_failure_keeps_transcript_and_partial_texts(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        collaborators = make_collaborators(generator=FakeGenerator(fail_on="clip.mp4", fail_after=1))

        with pytest.raises(FileProcessingError) as exc_info:
            run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 3))

        partial = exc_info.value.partial
        assert exc_info.value.stage == ProcessingStage.GENERATION
        assert partial.transcript == "hello from the video"
        assert [c.ordinal for c in partial.candidates] == [1]
        assert partial.best_candidate_ordinal == 0
        assert collaborators.evaluator.calls == []

    def test_evaluation_failure_keeps_candidates(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        existing = _transcribed("clip.mp4", [1], best=1)
        collaborators = make_collaborators(evaluator=FakeEvaluator(fail_on="clip.mp4"))

        with pytest.raises(FileProcessingError) as exc_info:
            run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 2, existing))

        partial = exc_info.value.partial
        assert exc_info.value.stage == ProcessingStage.EVALUATION
        assert [c.ordinal for c in partial.candidates] == [1, 2]
        # The old pick covered only candidate 1
        assert partial.best_candidate_ordinal == 0
        assert not partial.is_terminal(2)

    def test_out_of_range_evaluation_is_an_error(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        collaborators = make_collaborators(evaluator=FakeEvaluator(choice=0))

        with pytest.raises(FileProcessingError) as exc_info:
            run(_processor(tmp_path, collaborators).process(video, "clip.mp4", 2))

        assert exc_info.value.stage == ProcessingStage.EVALUATION


class TestCancellation:
    def test_set_event_stops_before_next_call(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        cancel_event = asyncio.Event()
        collaborators = make_collaborators(generator=FakeGenerator(on_generate=cancel_event.set))

        with pytest.raises(asyncio.CancelledError):
            run(_processor(tmp_path, collaborators, cancel_event).process(video, "clip.mp4", 2))

        assert len(collaborators.generator.calls) == 1
        assert collaborators.evaluator.calls == []

    def test_already_cancelled_makes_no_calls(self, tmp_path):
        (video,) = touch_videos(tmp_path, "clip.mp4")
        cancel_event = asyncio.Event()
        cancel_event.set()
        collaborators = make_collaborators()

        with pytest.raises(asyncio.CancelledError):
            run(_processor(tmp_path, collaborators, cancel_event).process(video, "clip.mp4", 2))

        assert total_calls(collaborators) == 0
