"""Tests para el almacén de progreso."""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from tutor_lab.core.persistence import JsonProgressStorage, MemoryProgressStorage, ProgressStore
from tutor_lab.core.state import ProgressRecord, clamp_score


class FailingStorage(MemoryProgressStorage):
    """Almacenamiento cuyo disco está lleno."""

    def save(self, course_id, data) -> None:
        raise OSError("No space left on device")


class TestProgressRecord:
    """Tests del registro de progreso."""

    def test_to_dict_layout(self) -> None:
        record = ProgressRecord("c", {"b", "a"}, {"e1": 80.0}, 12)

        assert record.to_dict() == {
            "completedLessons": ["a", "b"],
            "exerciseScores": {"e1": 80.0},
            "timeSpentMinutes": 12,
        }

    def test_from_dict_clamps_scores(self) -> None:
        record = ProgressRecord.from_dict("c", {"exerciseScores": {"e1": 150, "e2": -3}})

        assert record.exercise_scores == {"e1": 100.0, "e2": 0.0}
        assert record.completed_lessons == set()

    def test_from_dict_rejects_bad_shape(self) -> None:
        with pytest.raises(ValueError):
            ProgressRecord.from_dict("c", {"completedLessons": "a1"})

    def test_clamp_score(self) -> None:
        assert clamp_score(-1) == 0
        assert clamp_score(55.5) == 55.5
        assert clamp_score(101) == 100


class TestProgressStore:
    """Tests de las operaciones del almacén."""

    def test_initialize_is_idempotent(self, progress: ProgressStore, storage: MemoryProgressStorage) -> None:
        first = progress.initialize("c")
        second = progress.initialize("c")

        assert first is second
        assert storage.data == {}

    def test_mark_lesson_complete_once(self, progress: ProgressStore, storage: MemoryProgressStorage) -> None:
        assert progress.mark_lesson_complete("c", "a1") is True
        assert progress.mark_lesson_complete("c", "a1") is False

        assert progress.get_record("c").completed_lessons == {"a1"}
        assert storage.data["c"]["completedLessons"] == ["a1"]

    def test_best_policy_keeps_maximum(self, progress: ProgressStore) -> None:
        progress.record_exercise_score("c", "e1", 90)

        assert progress.record_exercise_score("c", "e1", 80) == 90
        assert progress.record_exercise_score("c", "e1", 95) == 95
        assert progress.get_record("c").exercise_scores == {"e1": 95}

    def test_latest_policy_overwrites(self, storage: MemoryProgressStorage) -> None:
        progress = ProgressStore(storage, score_policy="latest")
        progress.record_exercise_score("c", "e1", 90)

        assert progress.record_exercise_score("c", "e1", 80) == 80

    def test_scores_are_clamped(self, progress: ProgressStore) -> None:
        assert progress.record_exercise_score("c", "e1", 140) == 100
        assert progress.record_exercise_score("c", "e2", -5) == 0

    def test_invalid_policy(self, storage: MemoryProgressStorage) -> None:
        with pytest.raises(ValueError):
            ProgressStore(storage, score_policy="average")

    def test_add_time_spent(self, progress: ProgressStore, storage: MemoryProgressStorage) -> None:
        progress.add_time_spent("c", 5)

        assert progress.add_time_spent("c", 2.5) == 7.5
        assert progress.add_time_spent("c", 0) == 7.5
        assert storage.data["c"]["timeSpentMinutes"] == 7.5

    def test_negative_time_rejected(self, progress: ProgressStore) -> None:
        with pytest.raises(ValueError):
            progress.add_time_spent("c", -1)

    def test_get_record_is_copy(self, progress: ProgressStore) -> None:
        record = progress.get_record("c")
        record.completed_lessons.add("intruso")

        assert progress.get_record("c").completed_lessons == set()

    def test_reset_course(self, progress: ProgressStore, storage: MemoryProgressStorage) -> None:
        progress.mark_lesson_complete("c", "a1")
        progress.mark_lesson_complete("otro", "x")

        progress.reset_course("c")

        assert progress.get_record("c").completed_lessons == set()
        assert "c" not in storage.data
        assert progress.get_record("otro").completed_lessons == {"x"}

    def test_courses_are_independent(self, progress: ProgressStore) -> None:
        progress.mark_lesson_complete("c1", "a1")

        assert progress.get_record("c2").completed_lessons == set()

    def test_loads_previous_session(self, storage: MemoryProgressStorage) -> None:
        ProgressStore(storage).mark_lesson_complete("c", "a1")

        reopened = ProgressStore(storage)

        assert reopened.get_record("c").completed_lessons == {"a1"}

    def test_failed_save_keeps_memory(self, caplog: pytest.LogCaptureFixture) -> None:
        progress = ProgressStore(FailingStorage())

        with caplog.at_level(logging.WARNING, logger="tutor_lab.core.persistence"):
            assert progress.mark_lesson_complete("c", "a1") is True

        assert progress.get_record("c").completed_lessons == {"a1"}
        assert "No se pudo guardar" in caplog.text


class TestJsonProgressStorage:
    """Tests del almacenamiento en archivos JSON."""

    def test_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = JsonProgressStorage(Path(tmpdir) / "progress")
            ProgressStore(storage).record_exercise_score("csharp-basics", "hello", 90)

            path = storage.get_path("csharp-basics")
            data = json.loads(path.read_text(encoding="utf-8"))

            assert data == {"completedLessons": [], "exerciseScores": {"hello": 90.0}, "timeSpentMinutes": 0}
            assert not path.with_suffix(".json.tmp").exists()
            assert ProgressStore(storage).get_record("csharp-basics").exercise_scores == {"hello": 90.0}

    def test_unsafe_course_id(self) -> None:
        storage = JsonProgressStorage(Path("/tmp/p"))

        path = storage.get_path("../c#/x")

        assert path.parent == Path("/tmp/p")
        assert path.name.startswith(".._c__x-")
        assert storage.get_path("csharp-basics").name == "csharp-basics.json"

    def test_sanitized_ids_do_not_collide(self) -> None:
        """Test 'a/b' y 'a_b' se guardan en archivos distintos."""
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = JsonProgressStorage(Path(tmpdir))
            progress = ProgressStore(storage)
            progress.mark_lesson_complete("a/b", "l1")
            progress.mark_lesson_complete("a_b", "l2")

            assert storage.get_path("a/b") != storage.get_path("a_b")

            reopened = ProgressStore(storage)
            assert reopened.get_record("a/b").completed_lessons == {"l1"}
            assert reopened.get_record("a_b").completed_lessons == {"l2"}

    def test_missing_file_is_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert JsonProgressStorage(Path(tmpdir)).load("nope") is None

    def test_corrupt_file_starts_fresh(self, caplog: pytest.LogCaptureFixture) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = JsonProgressStorage(Path(tmpdir))
            storage.get_path("c").write_text("{no es json", encoding="utf-8")

            with caplog.at_level(logging.WARNING, logger="tutor_lab.core.persistence"):
                record = ProgressStore(storage).get_record("c")

            assert record == ProgressRecord(course_id="c")
            assert "se empieza de cero" in caplog.text

    def test_invalid_utf8_starts_fresh(self, caplog: pytest.LogCaptureFixture) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = JsonProgressStorage(Path(tmpdir))
            storage.get_path("c1").write_bytes(b'{"completedLessons": ["\xff\xfe"]}')

            with caplog.at_level(logging.WARNING, logger="tutor_lab.core.persistence"):
                record = ProgressStore(storage).get_record("c1")

            assert record == ProgressRecord(course_id="c1")
            assert "se empieza de cero" in caplog.text

    def test_wrong_shape_starts_fresh(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = JsonProgressStorage(Path(tmpdir))
            storage.get_path("c").write_text('["a1"]', encoding="utf-8")

            assert ProgressStore(storage).get_record("c").completed_lessons == set()

    def test_delete(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = JsonProgressStorage(Path(tmpdir))
            storage.save("c", {"completedLessons": []})

            storage.delete("c")
            storage.delete("c")

            assert storage.load("c") is None
