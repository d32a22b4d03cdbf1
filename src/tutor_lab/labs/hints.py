"""Seguimiento de pistas y solución reveladas en una sesión de ejercicio."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.course import Exercise

HINT_PENALTY = 10
SOLUTION_PENALTY = 50


@dataclass(frozen=True)
class HintDisclosureState:
    """Instantánea de lo revelado en la sesión."""

    revealed_hints: frozenset[int] = frozenset()
    solution_revealed: bool = False

    @property
    def hints_revealed(self) -> int:
        return len(self.revealed_hints)


class HintDisclosureTracker:
    """Estado efímero de revelación de un ejercicio.

    Solo crece: una pista revelada no se puede ocultar ni la solución
    esconderse salvo con ``reset``.
    """

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._revealed: set[int] = set()
        self._solution_revealed = False

    def reveal_hint(self, index: int) -> str:
        """Revelar la pista ``index`` (idempotente) y devolver su texto."""
        if not 0 <= index < len(self.exercise.hints):
            raise IndexError(
                f"El ejercicio '{self.exercise.id}' no tiene la pista {index}"
            )
        self._revealed.add(index)
        return self.exercise.hints[index]

    def reveal_solution(self) -> str:
        """Revelar la solución de referencia (idempotente)."""
        if not self.exercise.solution:
            raise ValueError(f"El ejercicio '{self.exercise.id}' no tiene solución")
        self._solution_revealed = True
        return self.exercise.solution

    def reset(self) -> None:
        """Olvidar todo lo revelado (reinicio explícito del ejercicio)."""
        self._revealed.clear()
        self._solution_revealed = False

    @property
    def hints_revealed(self) -> int:
        return len(self._revealed)

    @property
    def solution_revealed(self) -> bool:
        return self._solution_revealed

    @property
    def state(self) -> HintDisclosureState:
        return HintDisclosureState(frozenset(self._revealed), self._solution_revealed)

    def revealed_hints(self) -> list[str]:
        """Textos de las pistas reveladas, en orden de índice."""
        return [self.exercise.hints[i] for i in sorted(self._revealed)]

    @property
    def max_score(self) -> int:
        """Puntuación máxima alcanzable con lo revelado hasta ahora."""
        return compute_score(self.state)


def compute_score(state: HintDisclosureState) -> int:
    """100 − 10 por pista − 50 si se vio la solución, limitado a [0, 100]."""
    score = 100 - HINT_PENALTY * state.hints_revealed
    if state.solution_revealed:
        score -= SOLUTION_PENALTY
    return max(0, min(100, score))
