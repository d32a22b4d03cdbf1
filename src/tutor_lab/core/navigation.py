"""Navegación entre lecciones y cálculo de avance."""

from __future__ import annotations

from dataclasses import dataclass

from .course import Course, Lesson, Module
from .state import ProgressRecord


@dataclass
class ProgressStats:
    """Resumen de avance de un curso."""

    total_lessons: int
    completed_lessons: int
    completion_rate: float  # 0-100
    average_score: float
    time_spent_minutes: float


def _locate(course: Course, lesson_id: str) -> tuple[int, list[Module], int, list[Lesson]] | None:
    """Posición de la lección: (índice módulo, módulos, índice lección, lecciones)."""
    modules = course.ordered_modules()
    for module_index, module in enumerate(modules):
        lessons = module.ordered_lessons()
        for lesson_index, lesson in enumerate(lessons):
            if lesson.id == lesson_id:
                return module_index, modules, lesson_index, lessons
    return None


def resolve_next(course: Course, lesson_id: str) -> Lesson | None:
    """Lección siguiente, cruzando al siguiente módulo si hace falta.

    No hay vuelta al principio: al final del curso, o si la lección no
    existe, devuelve None.
    """
    located = _locate(course, lesson_id)
    if located is None:
        return None

    module_index, modules, lesson_index, lessons = located
    if lesson_index + 1 < len(lessons):
        return lessons[lesson_index + 1]

    if module_index + 1 < len(modules):
        following = modules[module_index + 1].ordered_lessons()
        if following:
            return following[0]
    return None


def resolve_previous(course: Course, lesson_id: str) -> Lesson | None:
    """Lección anterior, cruzando al módulo previo si hace falta."""
    located = _locate(course, lesson_id)
    if located is None:
        return None

    module_index, modules, lesson_index, lessons = located
    if lesson_index > 0:
        return lessons[lesson_index - 1]

    if module_index > 0:
        preceding = modules[module_index - 1].ordered_lessons()
        if preceding:
            return preceding[-1]
    return None


def completion_percentage(course: Course, record: ProgressRecord | None) -> float:
    """Porcentaje de lecciones completadas (ignora identificadores obsoletos)."""
    lesson_ids = course.lesson_ids()
    if not lesson_ids or record is None:
        return 0.0
    completed = len(lesson_ids & record.completed_lessons)
    return completed / len(lesson_ids) * 100


def module_completion(course: Course, record: ProgressRecord | None) -> dict[str, float]:
    """Porcentaje completado por módulo, en orden de curso."""
    completed = record.completed_lessons if record else set()
    result: dict[str, float] = {}
    for module in course.ordered_modules():
        if not module.lessons:
            result[module.id] = 0.0
            continue
        done = sum(1 for lesson in module.lessons if lesson.id in completed)
        result[module.id] = done / len(module.lessons) * 100
    return result


def progress_stats(course: Course, record: ProgressRecord | None) -> ProgressStats:
    """Estadísticas para el panel de aprendizaje."""
    lesson_ids = course.lesson_ids()
    if record is None:
        return ProgressStats(len(lesson_ids), 0, 0.0, 0.0, 0)

    scores = list(record.exercise_scores.values())
    return ProgressStats(
        total_lessons=len(lesson_ids),
        completed_lessons=len(lesson_ids & record.completed_lessons),
        completion_rate=completion_percentage(course, record),
        average_score=sum(scores) / len(scores) if scores else 0.0,
        time_spent_minutes=record.time_spent_minutes,
    )
