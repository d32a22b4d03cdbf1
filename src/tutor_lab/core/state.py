"""Estado del progreso del estudiante."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def clamp_score(score: float) -> float:
    """Limitar una puntuación a [0, 100]."""
    return max(0.0, min(100.0, float(score)))


@dataclass
class ProgressRecord:
    """Progreso de un curso para el único estudiante local."""

    course_id: str
    completed_lessons: set[str] = field(default_factory=set)
    exercise_scores: dict[str, float] = field(default_factory=dict)
    time_spent_minutes: float = 0

    def to_dict(self) -> dict[str, Any]:
        """Convertir al formato persistido."""
        return {
            "completedLessons": sorted(self.completed_lessons),
            "exerciseScores": dict(self.exercise_scores),
            "timeSpentMinutes": self.time_spent_minutes,
        }

    @classmethod
    def from_dict(cls, course_id: str, data: dict[str, Any]) -> ProgressRecord:
        """Crear desde el formato persistido.

        Las puntuaciones se vuelven a limitar al cargar, de modo que un
        archivo editado a mano no deja valores fuera de [0, 100].
        """
        completed = data.get("completedLessons", [])
        scores = data.get("exerciseScores", {})
        if not isinstance(completed, list) or not isinstance(scores, dict):
            raise ValueError(f"Progreso con forma inválida para '{course_id}'")

        return cls(
            course_id=course_id,
            completed_lessons={str(lesson_id) for lesson_id in completed},
            exercise_scores={str(k): clamp_score(v) for k, v in scores.items()},
            time_spent_minutes=max(0, data.get("timeSpentMinutes", 0)),
        )

    def copy(self) -> ProgressRecord:
        return ProgressRecord(
            course_id=self.course_id,
            completed_lessons=set(self.completed_lessons),
            exercise_scores=dict(self.exercise_scores),
            time_spent_minutes=self.time_spent_minutes,
        )
