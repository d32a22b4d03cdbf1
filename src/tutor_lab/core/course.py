"""Modelos de datos para cursos, módulos, lecciones y ejercicios."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml

from ..errors import CourseValidationError

DIFFICULTIES = ("easy", "medium", "hard", "intermediate", "advanced")
LEVELS = ("beginner", "intermediate", "advanced")


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    """Obtener campo requerido o fallar indicando la entidad."""
    if not isinstance(data, dict):
        raise CourseValidationError(f"{where}: se esperaba un mapeo, no {type(data).__name__}")
    if key not in data or data[key] is None:
        raise CourseValidationError(f"{where}: falta el campo requerido '{key}'")
    return data[key]


def _string_list(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise CourseValidationError(f"{where}: se esperaba una lista de textos")
    return tuple(value)


@dataclass(frozen=True)
class CodeExample:
    """Ejemplo de código de una lección (opaco para el motor)."""

    id: str
    language: str
    code: str
    title: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "id": self.id,
            "language": self.language,
            "code": self.code,
            "title": self.title,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodeExample:
        """Crear desde diccionario."""
        where = f"ejemplo {data.get('id', '?') if isinstance(data, dict) else '?'}"
        return cls(
            id=str(_require(data, "id", where)),
            language=str(data.get("language", "csharp")),
            code=str(_require(data, "code", where)),
            title=data.get("title", ""),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class Exercise:
    """Un ejercicio práctico dentro de una lección."""

    id: str
    title: str
    description: str = ""
    difficulty: str = "easy"  # easy, medium, hard, intermediate, advanced
    starter_code: str = ""
    solution: str | None = None
    hints: tuple[str, ...] = ()
    estimated_time: int | None = None  # minutos
    language: str = "csharp"

    @property
    def has_solution(self) -> bool:
        return bool(self.solution)

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "starter_code": self.starter_code,
            "solution": self.solution,
            "hints": list(self.hints),
            "estimated_time": self.estimated_time,
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Exercise:
        """Crear desde diccionario validando su forma."""
        exercise_id = str(_require(data, "id", "ejercicio"))
        where = f"ejercicio '{exercise_id}'"

        difficulty = data.get("difficulty", "easy")
        if difficulty not in DIFFICULTIES:
            raise CourseValidationError(f"{where}: dificultad desconocida '{difficulty}'")

        estimated_time = data.get("estimated_time")
        if estimated_time is not None and (not isinstance(estimated_time, int) or estimated_time < 0):
            raise CourseValidationError(f"{where}: estimated_time debe ser un entero >= 0")

        return cls(
            id=exercise_id,
            title=str(_require(data, "title", where)),
            description=data.get("description", ""),
            difficulty=difficulty,
            starter_code=data.get("starter_code", ""),
            solution=data.get("solution") or None,
            hints=_string_list(data.get("hints"), f"{where}.hints"),
            estimated_time=estimated_time,
            language=data.get("language", "csharp"),
        )


@dataclass(frozen=True)
class Lesson:
    """Una lección. Contenido inmutable cargado al inicio."""

    id: str
    module_id: str
    order: int
    title: str
    description: str = ""
    exercises: tuple[Exercise, ...] = ()
    code_examples: tuple[CodeExample, ...] = ()
    estimated_time: int | None = None  # minutos

    def get_exercise(self, exercise_id: str) -> Exercise | None:
        """Obtener ejercicio por identificador."""
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "id": self.id,
            "module_id": self.module_id,
            "order": self.order,
            "title": self.title,
            "description": self.description,
            "estimated_time": self.estimated_time,
            "exercises": [e.to_dict() for e in self.exercises],
            "code_examples": [c.to_dict() for c in self.code_examples],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], module_id: str, position: int) -> Lesson:
        """Crear desde diccionario.

        Las lecciones sin ``order`` toman su posición (desde 1) dentro del
        módulo y las que no declaran ``module_id`` heredan el del módulo.
        """
        lesson_id = str(_require(data, "id", f"lección en módulo '{module_id}'"))
        where = f"lección '{lesson_id}'"

        declared_module = data.get("module_id", module_id)
        if declared_module != module_id:
            raise CourseValidationError(
                f"{where}: module_id '{declared_module}' no coincide con el módulo '{module_id}'"
            )

        order = data.get("order", position)
        if not isinstance(order, int) or isinstance(order, bool):
            raise CourseValidationError(f"{where}: order debe ser entero")

        return cls(
            id=lesson_id,
            module_id=module_id,
            order=order,
            title=str(_require(data, "title", where)),
            description=data.get("description", ""),
            exercises=tuple(Exercise.from_dict(e) for e in data.get("exercises") or []),
            code_examples=tuple(CodeExample.from_dict(c) for c in data.get("code_examples") or []),
            estimated_time=data.get("estimated_time"),
        )


@dataclass(frozen=True)
class Module:
    """Un módulo del curso."""

    id: str
    title: str
    order: int
    lessons: tuple[Lesson, ...] = ()

    def ordered_lessons(self) -> list[Lesson]:
        """Lecciones ordenadas por ``order``."""
        return sorted(self.lessons, key=lambda lesson: lesson.order)

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "lessons": [lesson.to_dict() for lesson in self.lessons],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Module:
        """Crear desde diccionario."""
        module_id = str(_require(data, "id", "módulo"))
        where = f"módulo '{module_id}'"

        order = _require(data, "order", where)
        if not isinstance(order, int) or isinstance(order, bool):
            raise CourseValidationError(f"{where}: order debe ser entero")

        lessons = tuple(
            Lesson.from_dict(lesson_data, module_id, position)
            for position, lesson_data in enumerate(data.get("lessons") or [], start=1)
        )

        seen: set[int] = set()
        for lesson in lessons:
            if lesson.order in seen:
                raise CourseValidationError(f"{where}: order de lección duplicado ({lesson.order})")
            seen.add(lesson.order)

        return cls(
            id=module_id,
            title=data.get("title", module_id),
            order=order,
            lessons=lessons,
        )


@dataclass(frozen=True)
class Course:
    """Curso completo."""

    id: str
    title: str
    description: str = ""
    level: str = "beginner"  # beginner, intermediate, advanced
    modules: tuple[Module, ...] = ()
    path: Path | None = field(default=None, compare=False)

    # Archivos
    COURSE_FILE = "course.yaml"

    def ordered_modules(self) -> list[Module]:
        """Módulos ordenados por ``order``."""
        return sorted(self.modules, key=lambda module: module.order)

    def iter_lessons(self) -> Iterator[Lesson]:
        """Recorrer lecciones en orden de curso."""
        for module in self.ordered_modules():
            yield from module.ordered_lessons()

    def lesson_ids(self) -> set[str]:
        return {lesson.id for module in self.modules for lesson in module.lessons}

    def get_module(self, module_id: str) -> Module | None:
        """Obtener módulo por identificador."""
        for module in self.modules:
            if module.id == module_id:
                return module
        return None

    def find_lesson(self, lesson_id: str) -> tuple[Module, Lesson] | None:
        """Localizar una lección y su módulo."""
        for module in self.modules:
            for lesson in module.lessons:
                if lesson.id == lesson_id:
                    return module, lesson
        return None

    def get_lesson(self, lesson_id: str) -> Lesson | None:
        found = self.find_lesson(lesson_id)
        return found[1] if found else None

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "level": self.level,
            "modules": [module.to_dict() for module in self.modules],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | None = None) -> Course:
        """Crear desde diccionario validando el árbol completo."""
        course_id = str(_require(data, "id", "curso"))
        where = f"curso '{course_id}'"

        level = data.get("level", "beginner")
        if level not in LEVELS:
            raise CourseValidationError(f"{where}: nivel desconocido '{level}'")

        modules = tuple(Module.from_dict(m) for m in data.get("modules") or [])

        orders: set[int] = set()
        module_ids: set[str] = set()
        lesson_ids: set[str] = set()
        exercise_ids: set[str] = set()
        for module in modules:
            if module.order in orders:
                raise CourseValidationError(f"{where}: order de módulo duplicado ({module.order})")
            orders.add(module.order)
            if module.id in module_ids:
                raise CourseValidationError(f"{where}: módulo duplicado '{module.id}'")
            module_ids.add(module.id)
            for lesson in module.lessons:
                if lesson.id in lesson_ids:
                    raise CourseValidationError(f"{where}: lección duplicada '{lesson.id}'")
                lesson_ids.add(lesson.id)
                for exercise in lesson.exercises:
                    if exercise.id in exercise_ids:
                        raise CourseValidationError(f"{where}: ejercicio duplicado '{exercise.id}'")
                    exercise_ids.add(exercise.id)

        return cls(
            id=course_id,
            title=str(_require(data, "title", where)),
            description=data.get("description", ""),
            level=level,
            modules=modules,
            path=path,
        )

    def save(self, path: Path) -> None:
        """Guardar curso a disco en YAML."""
        path = Path(path)
        if path.suffix not in (".yaml", ".yml"):
            path = path / self.COURSE_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.to_dict(),
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )

    @classmethod
    def load(cls, path: Path) -> Course:
        """Cargar curso desde un archivo YAML o un directorio con course.yaml."""
        path = Path(path)
        course_file = path / cls.COURSE_FILE if path.is_dir() else path

        if not course_file.exists():
            raise FileNotFoundError(f"Course file not found: {course_file}")

        with open(course_file, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise CourseValidationError(f"YAML inválido en {course_file}: {e}") from e

        if not isinstance(data, dict):
            raise CourseValidationError(f"{course_file}: el documento debe ser un mapeo")

        return cls.from_dict(data, path=course_file)
