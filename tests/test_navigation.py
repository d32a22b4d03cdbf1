"""Tests para navegación y avance."""

from conftest import course_data
from tutor_lab.core.course import Course
from tutor_lab.core.navigation import (
    completion_percentage,
    module_completion,
    progress_stats,
    resolve_next,
    resolve_previous,
)
from tutor_lab.core.state import ProgressRecord


def with_empty_module() -> Course:
    data = course_data()
    data["modules"].append({"id": "Z", "title": "Vacío", "order": 3, "lessons": []})
    return Course.from_dict(data)


class TestNavigation:
    """Tests de lección siguiente y anterior."""

    def test_next_within_module(self, course: Course) -> None:
        """Test lecciones desordenadas se recorren por order."""
        assert resolve_next(course, "a1").id == "a2"

    def test_next_crosses_module(self, course: Course) -> None:
        assert resolve_next(course, "a2").id == "b1"

    def test_previous_crosses_module(self, course: Course) -> None:
        assert resolve_previous(course, "b1").id == "a2"
        assert resolve_previous(course, "a2").id == "a1"

    def test_edges_do_not_wrap(self, course: Course) -> None:
        assert resolve_next(course, "b1") is None
        assert resolve_previous(course, "a1") is None

    def test_unknown_lesson(self, course: Course) -> None:
        assert resolve_next(course, "nope") is None
        assert resolve_previous(course, "nope") is None

    def test_empty_following_module(self) -> None:
        course = with_empty_module()

        assert resolve_next(course, "b1") is None

    def test_every_lesson_reachable(self, course: Course) -> None:
        visited = ["a1"]
        while (lesson := resolve_next(course, visited[-1])) is not None:
            visited.append(lesson.id)

        assert visited == [lesson.id for lesson in course.iter_lessons()]


class TestCompletion:
    """Tests de porcentaje de avance."""

    def test_no_record(self, course: Course) -> None:
        assert completion_percentage(course, None) == 0

    def test_partial_completion(self, course: Course) -> None:
        record = ProgressRecord("csharp-basics", completed_lessons={"a1"})

        assert round(completion_percentage(course, record), 2) == 33.33

    def test_stale_ids_ignored(self, course: Course) -> None:
        record = ProgressRecord("csharp-basics", completed_lessons={"a1", "a2", "b1", "borrada"})

        assert completion_percentage(course, record) == 100

    def test_monotonic(self, course: Course) -> None:
        record = ProgressRecord("csharp-basics")
        values = []
        for lesson_id in ["a2", "a2", "b1", "a1"]:
            record.completed_lessons.add(lesson_id)
            values.append(completion_percentage(course, record))

        assert values == sorted(values)
        assert values[-1] == 100

    def test_course_without_lessons(self) -> None:
        course = Course.from_dict({"id": "c", "title": "C", "modules": []})

        assert completion_percentage(course, ProgressRecord("c", {"x"})) == 0

    def test_module_completion(self) -> None:
        course = with_empty_module()
        record = ProgressRecord("csharp-basics", completed_lessons={"a1", "b1"})

        assert module_completion(course, record) == {"A": 50.0, "B": 100.0, "Z": 0.0}

    def test_progress_stats(self, course: Course) -> None:
        record = ProgressRecord(
            "csharp-basics",
            completed_lessons={"a1", "a2"},
            exercise_scores={"hello": 100.0, "hello-2": 80.0},
            time_spent_minutes=25,
        )

        stats = progress_stats(course, record)

        assert stats.total_lessons == 3
        assert stats.completed_lessons == 2
        assert stats.average_score == 90.0
        assert stats.time_spent_minutes == 25

    def test_progress_stats_without_record(self, course: Course) -> None:
        stats = progress_stats(course, None)

        assert stats.total_lessons == 3
        assert stats.completion_rate == 0
