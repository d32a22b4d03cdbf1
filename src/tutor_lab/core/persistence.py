"""Capa de persistencia del progreso."""

from __future__ import annotations

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ..errors import StorageError
from .state import ProgressRecord, clamp_score

logger = logging.getLogger(__name__)


class ProgressStorage(ABC):
    """Frontera de almacenamiento duradero, una entrada por curso."""

    @abstractmethod
    def load(self, course_id: str) -> dict[str, Any] | None:
        """Leer datos persistidos del curso, o None si no existen."""
        pass

    @abstractmethod
    def save(self, course_id: str, data: dict[str, Any]) -> None:
        """Escribir datos del curso."""
        pass

    def delete(self, course_id: str) -> None:
        """Eliminar datos del curso."""
        pass


class MemoryProgressStorage(ProgressStorage):
    """Almacenamiento en memoria (tests y sesiones efímeras)."""

    def __init__(self) -> None:
        self.data: dict[str, dict[str, Any]] = {}

    def load(self, course_id: str) -> dict[str, Any] | None:
        stored = self.data.get(course_id)
        return json.loads(json.dumps(stored)) if stored is not None else None

    def save(self, course_id: str, data: dict[str, Any]) -> None:
        self.data[course_id] = json.loads(json.dumps(data))

    def delete(self, course_id: str) -> None:
        self.data.pop(course_id, None)


class JsonProgressStorage(ProgressStorage):
    """Un archivo JSON por curso bajo ``base_path``."""

    def __init__(self, base_path: Path) -> None:
        """Inicializar con ruta base."""
        self.base_path = Path(base_path)

    def get_path(self, course_id: str) -> Path:
        """Obtener ruta del archivo de progreso.

        Los identificadores con caracteres no seguros llevan un hash corto
        del original, para que dos cursos nunca compartan archivo.
        """
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in course_id)
        if safe != course_id:
            digest = hashlib.md5(course_id.encode("utf-8")).hexdigest()[:8]
            safe = f"{safe}-{digest}"
        return self.base_path / f"{safe}.json"

    def load(self, course_id: str) -> dict[str, Any] | None:
        path = self.get_path(course_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"No se pudo leer {path}: {e}") from e

    def save(self, course_id: str, data: dict[str, Any]) -> None:
        path = self.get_path(course_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Escritura atómica: archivo temporal + rename
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)

    def delete(self, course_id: str) -> None:
        path = self.get_path(course_id)
        if path.exists():
            path.unlink()


class ProgressStore:
    """Repositorio del progreso por curso.

    Se construye explícitamente con un almacenamiento inyectado y se pasa
    a los controladores. Los registros se crean bajo demanda con
    ``initialize``; no hay cierre explícito. Las escrituras son de mejor
    esfuerzo: si el almacenamiento falla se registra un aviso y el
    registro en memoria sigue siendo el válido durante la sesión.
    """

    def __init__(self, storage: ProgressStorage, score_policy: str = "best") -> None:
        if score_policy not in ("best", "latest"):
            raise ValueError(f"score_policy inválida: {score_policy!r}")
        self.storage = storage
        self.score_policy = score_policy
        self._records: dict[str, ProgressRecord] = {}

    def initialize(self, course_id: str) -> ProgressRecord:
        """Cargar o crear el registro del curso (idempotente)."""
        record = self._records.get(course_id)
        if record is not None:
            return record

        record = self._load(course_id)
        self._records[course_id] = record
        return record

    def get_record(self, course_id: str) -> ProgressRecord:
        """Obtener copia del registro del curso."""
        return self.initialize(course_id).copy()

    def mark_lesson_complete(self, course_id: str, lesson_id: str) -> bool:
        """Marcar lección completada. Devuelve True si era nueva."""
        record = self.initialize(course_id)
        if lesson_id in record.completed_lessons:
            return False

        record.completed_lessons.add(lesson_id)
        logger.info("Lección completada: %s/%s", course_id, lesson_id)
        self._persist(record)
        return True

    def record_exercise_score(self, course_id: str, exercise_id: str, score: float) -> float:
        """Registrar puntuación según la política y devolver la almacenada."""
        record = self.initialize(course_id)
        score = clamp_score(score)
        previous = record.exercise_scores.get(exercise_id)

        if self.score_policy == "best" and previous is not None and previous >= score:
            return previous

        record.exercise_scores[exercise_id] = score
        logger.info("Puntuación %s/%s: %s", course_id, exercise_id, score)
        self._persist(record)
        return score

    def add_time_spent(self, course_id: str, minutes: float) -> float:
        """Acumular minutos dedicados al curso."""
        if minutes < 0:
            raise ValueError("minutes no puede ser negativo")

        record = self.initialize(course_id)
        if minutes == 0:
            return record.time_spent_minutes

        record.time_spent_minutes += minutes
        self._persist(record)
        return record.time_spent_minutes

    def reset_course(self, course_id: str) -> None:
        """Borrar todo el progreso del curso."""
        self._records[course_id] = ProgressRecord(course_id=course_id)
        try:
            self.storage.delete(course_id)
        except (OSError, StorageError) as e:
            logger.warning("No se pudo borrar el progreso de '%s': %s", course_id, e)

    def _load(self, course_id: str) -> ProgressRecord:
        try:
            data = self.storage.load(course_id)
        except (OSError, StorageError) as e:
            logger.warning("Progreso ilegible para '%s', se empieza de cero: %s", course_id, e)
            return ProgressRecord(course_id=course_id)

        if data is None:
            return ProgressRecord(course_id=course_id)

        try:
            return ProgressRecord.from_dict(course_id, data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Progreso corrupto para '%s', se empieza de cero: %s", course_id, e)
            return ProgressRecord(course_id=course_id)

    def _persist(self, record: ProgressRecord) -> None:
        try:
            self.storage.save(record.course_id, record.to_dict())
        except (OSError, StorageError) as e:
            logger.warning("No se pudo guardar el progreso de '%s': %s", record.course_id, e)
