"""Evaluador de ejercicios: validar, ejecutar y puntuar."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from ..core.course import Exercise
from .hints import HintDisclosureState, compute_score
from .simulator import ExecutionRequest, ExecutionResult, ExecutionSimulator, timeout_message
from .validator import CodeValidator, ValidationError

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 70
# Margen sobre el timeout del simulador antes de abandonar la llamada
TIMEOUT_GRACE_MS = 1000


@dataclass
class EvaluationResult:
    """Resultado de un intento de evaluación."""

    validation_errors: list[ValidationError] = field(default_factory=list)
    execution_result: ExecutionResult | None = None
    score: int | None = None
    passed: bool | None = None
    stale: bool = False

    @property
    def executed(self) -> bool:
        return self.execution_result is not None

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "validation_errors": [
                {"message": e.message, "line": e.line} for e in self.validation_errors
            ],
            "execution_result": self.execution_result.to_dict() if self.execution_result else None,
            "score": self.score,
            "passed": self.passed,
            "stale": self.stale,
        }


def is_passing(execution: ExecutionResult, score: int) -> bool:
    """Aprobado solo con ejecución correcta y puntuación estrictamente > 70."""
    return execution.success and score > PASS_THRESHOLD


class ExerciseEvaluator:
    """Orquesta validador y simulador y aplica la puntuación."""

    def __init__(
        self,
        simulator: ExecutionSimulator,
        validator: CodeValidator | None = None,
        include_compile_check: bool = True,
        timeout_ms: int = 15000,
    ) -> None:
        """Inicializar evaluador."""
        self.simulator = simulator
        self.validator = validator or CodeValidator()
        self.include_compile_check = include_compile_check
        self.timeout_ms = timeout_ms

    def build_request(self, exercise: Exercise) -> ExecutionRequest:
        return ExecutionRequest(
            language=exercise.language,
            include_compile_check=self.include_compile_check,
            timeout_ms=self.timeout_ms,
        )

    async def evaluate(
        self,
        exercise: Exercise,
        code: str,
        hint_state: HintDisclosureState,
    ) -> EvaluationResult:
        """Evaluar un intento.

        Con errores de validación no se llega a ejecutar. Un fallo de la
        ejecución deja la puntuación sin calcular; un fallo del transporte
        se convierte en una ejecución fallida con el motivo.
        """
        errors = self.validator.validate(code, exercise.language)
        if errors:
            logger.debug("Ejercicio %s: %d errores de validación", exercise.id, len(errors))
            return EvaluationResult(validation_errors=errors)

        execution = await self._execute(exercise, code)
        if not execution.success:
            return EvaluationResult(execution_result=execution, passed=False)

        score = compute_score(hint_state)
        return EvaluationResult(
            execution_result=execution,
            score=score,
            passed=is_passing(execution, score),
        )

    async def _execute(self, exercise: Exercise, code: str) -> ExecutionResult:
        request = self.build_request(exercise)
        start = time.perf_counter()

        try:
            return await asyncio.wait_for(
                self.simulator.execute(code, request),
                timeout=(request.timeout_ms + TIMEOUT_GRACE_MS) / 1000,
            )
        except asyncio.TimeoutError:
            elapsed = (time.perf_counter() - start) * 1000
            logger.warning("Ejercicio %s: el simulador no respondió a tiempo", exercise.id)
            return ExecutionResult.failure(timeout_message(request.timeout_ms), elapsed)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000
            logger.warning("Ejercicio %s: fallo llamando al simulador: %s", exercise.id, e)
            return ExecutionResult.failure(f"Error de ejecución: {e}", elapsed)
