"""Sesión de ejercicio y máquina de estados de compleción."""

from __future__ import annotations

import logging
from enum import Enum

from ..core.course import Course, Exercise, Lesson
from ..core.persistence import ProgressStore
from .evaluator import EvaluationResult, ExerciseEvaluator
from .hints import HintDisclosureTracker

logger = logging.getLogger(__name__)


class ExerciseStatus(str, Enum):
    """Estados de un ejercicio abierto."""

    NOT_STARTED = "not_started"
    ATTEMPTED = "attempted"
    COMPLETED = "completed"


class CompletionController:
    """Controla los intentos de un ejercicio abierto.

    Es el único que escribe en el ``ProgressStore``: la primera evaluación
    aprobada registra la puntuación y marca la lección como completada.
    Cada evaluación lleva un número de generación; si mientras espera al
    simulador llega otra evaluación o un ``reset``, su resultado se marca
    como obsoleto y no se aplica.
    """

    def __init__(
        self,
        course: Course,
        lesson: Lesson,
        exercise: Exercise,
        evaluator: ExerciseEvaluator,
        progress: ProgressStore,
    ) -> None:
        if lesson.get_exercise(exercise.id) is None:
            raise ValueError(f"El ejercicio '{exercise.id}' no pertenece a la lección '{lesson.id}'")
        if course.get_lesson(lesson.id) is None:
            raise ValueError(f"La lección '{lesson.id}' no pertenece al curso '{course.id}'")

        self.course = course
        self.lesson = lesson
        self.exercise = exercise
        self.evaluator = evaluator
        self.progress = progress

        self.status = ExerciseStatus.NOT_STARTED
        self.hints = HintDisclosureTracker(exercise)
        self.code = exercise.starter_code
        self.last_result: EvaluationResult | None = None
        self.best_score: int | None = None
        self.attempts = 0
        self._generation = 0
        self._in_flight = 0

    @property
    def is_running(self) -> bool:
        return self._in_flight > 0

    @property
    def completed(self) -> bool:
        return self.status is ExerciseStatus.COMPLETED

    async def evaluate(self, code: str | None = None) -> EvaluationResult:
        """Evaluar el código (por defecto, el último editado)."""
        if code is not None:
            self.code = code

        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            result = await self.evaluator.evaluate(self.exercise, self.code, self.hints.state)
        finally:
            self._in_flight -= 1

        if generation != self._generation:
            logger.debug("Ejercicio %s: descartado resultado obsoleto", self.exercise.id)
            result.stale = True
            return result

        self._apply(result)
        return result

    def reset(self) -> None:
        """Volver al código inicial y descartar lo revelado.

        No retira una llamada en curso; su resultado llegará obsoleto. El
        progreso ya registrado se mantiene.
        """
        self._generation += 1
        self.hints.reset()
        self.code = self.exercise.starter_code
        self.last_result = None

    def _apply(self, result: EvaluationResult) -> None:
        self.attempts += 1
        self.last_result = result

        if self.status is ExerciseStatus.NOT_STARTED:
            self.status = ExerciseStatus.ATTEMPTED

        if not result.passed or result.score is None:
            return

        if self.best_score is None or result.score > self.best_score:
            self.best_score = result.score

        if self.status is ExerciseStatus.ATTEMPTED:
            self.status = ExerciseStatus.COMPLETED
            logger.info(
                "Ejercicio %s completado con %d puntos (lección %s)",
                self.exercise.id, result.score, self.lesson.id,
            )

        self.progress.initialize(self.course.id)
        self.progress.record_exercise_score(self.course.id, self.exercise.id, result.score)
        self.progress.mark_lesson_complete(self.course.id, self.lesson.id)


class LessonSession:
    """Controladores de los ejercicios de una lección abierta.

    Se crea al abrir la lección y se descarta al salir: volver a abrirla
    empieza con pistas y solución sin revelar.
    """

    def __init__(
        self,
        course: Course,
        lesson: Lesson,
        evaluator: ExerciseEvaluator,
        progress: ProgressStore,
    ) -> None:
        self.course = course
        self.lesson = lesson
        self.controllers = [
            CompletionController(course, lesson, exercise, evaluator, progress)
            for exercise in lesson.exercises
        ]

    def get(self, exercise_id: str) -> CompletionController | None:
        for controller in self.controllers:
            if controller.exercise.id == exercise_id:
                return controller
        return None

    @property
    def all_completed(self) -> bool:
        return bool(self.controllers) and all(c.completed for c in self.controllers)
