"""Tests for record and store models."""

import pytest
from pydantic import ValidationError

from vidscribe.models import NO_AUDIO, Candidate, ProcessingRecord, ProcessingStore, StoreSummary


def _candidates(*ordinals):
    return [Candidate(ordinal=o, text=f"text {o}") for o in ordinals]


class TestProcessingRecord:
    def test_defaults(self):
        record = ProcessingRecord(source_path="a.mp4")
        assert record.has_audio
        assert record.next_ordinal == 1
        assert record.best_candidate is None
        assert not record.is_terminal(1)

    def test_next_ordinal_continues_from_max(self):
        record = ProcessingRecord(source_path="a.mp4", transcript="t", candidates=_candidates(1, 4))
        assert record.next_ordinal == 5

    def test_ordinals_must_increase(self):
        with pytest.raises(ValidationError, match="strictly increasing"):
            ProcessingRecord(source_path="a.mp4", candidates=_candidates(2, 2))

    def test_ordinals_start_at_one(self):
        with pytest.raises(ValidationError):
            Candidate(ordinal=0, text="x")

    def test_best_must_reference_candidate(self):
        with pytest.raises(ValidationError, match="best_candidate_ordinal"):
            ProcessingRecord(source_path="a.mp4", candidates=_candidates(1), best_candidate_ordinal=2)

    def test_no_audio_excludes_content(self):
        with pytest.raises(ValidationError):
            ProcessingRecord(source_path="a.mp4", audio_asset_path=NO_AUDIO, candidates=_candidates(1))

    def test_no_audio_is_terminal(self):
        record = ProcessingRecord(source_path="a.mp4", audio_asset_path=NO_AUDIO)
        assert not record.has_audio
        assert record.is_terminal(100)

    def test_full_but_unranked_is_not_terminal(self):
        record = ProcessingRecord(source_path="a.mp4", transcript="t", candidates=_candidates(1, 2))
        assert not record.is_ranked
        assert not record.is_terminal(2)
        assert not record.is_complete(1)

    def test_best_candidate(self):
        record = ProcessingRecord(
            source_path="a.mp4", transcript="t", candidates=_candidates(1, 2), best_candidate_ordinal=2
        )
        assert record.best_candidate.text == "text 2"


class TestProcessingStore:
    def test_upsert_replaces_in_place(self):
        store = ProcessingStore()
        store.upsert(ProcessingRecord(source_path="a.mp4"))
        store.upsert(ProcessingRecord(source_path="b.mp4"))
        store.upsert(ProcessingRecord(source_path="a.mp4", transcript="new"))

        assert len(store) == 2
        assert [r.source_path for r in store.records] == ["a.mp4", "b.mp4"]
        assert store.get("a.mp4").transcript == "new"
        assert "b.mp4" in store
        assert store.get("c.mp4") is None

    def test_index_built_from_loaded_records(self):
        store = ProcessingStore.model_validate(
            {"records": [{"source_path": "x.mp4"}, {"source_path": "y.mp4"}]}
        )
        assert store.get("y.mp4").source_path == "y.mp4"

    def test_duplicate_keys_rejected(self):
        with pytest.raises(ValidationError, match="duplicate"):
            ProcessingStore(records=[ProcessingRecord(source_path="a.mp4")] * 2)


class TestStoreSummary:
    def test_counts(self):
        store = ProcessingStore()
        done = ProcessingRecord(
            source_path="done.mp4", transcript="t", candidates=_candidates(1, 2), best_candidate_ordinal=2
        )
        store.upsert(done)
        store.upsert(ProcessingRecord(source_path="half.mp4", transcript="t", candidates=_candidates(1)))
        store.upsert(ProcessingRecord(source_path="silent.mp4", audio_asset_path=NO_AUDIO))

        summary = StoreSummary.from_store(store, target=2)

        assert (summary.total, summary.complete, summary.no_audio, summary.pending) == (3, 1, 1, 1)

    def test_unranked_full_record_is_pending(self):
        store = ProcessingStore()
        store.upsert(ProcessingRecord(source_path="a.mp4", transcript="t", candidates=_candidates(1, 2)))

        summary = StoreSummary.from_store(store, target=2)

        assert (summary.complete, summary.pending) == (0, 1)
