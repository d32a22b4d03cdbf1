"""Aplicación de consola simple sobre el motor de ejercicios."""

from __future__ import annotations

import sys
import time
from pathlib import Path

from ..config import Config, get_config
from ..core.course import Course, Lesson
from ..core.navigation import module_completion, progress_stats, resolve_next, resolve_previous
from ..core.persistence import JsonProgressStorage, ProgressStore
from ..labs.evaluator import EvaluationResult, ExerciseEvaluator
from ..labs.session import CompletionController, LessonSession
from ..labs.simulator import ExecutionSimulator, HttpExecutionSimulator, StaticExecutionSimulator

if sys.platform == "win32":
    import colorama
    colorama.init()


def build_simulator(config: Config) -> ExecutionSimulator:
    """Simulador HTTP con análisis estático como respaldo opcional."""
    fallback = StaticExecutionSimulator() if config.use_static_fallback else None
    return HttpExecutionSimulator(config.simulator_url, fallback=fallback)


class TutorApp:
    """Tutor de consola: navegar lecciones y resolver ejercicios."""

    def __init__(
        self,
        course: Course,
        config: Config | None = None,
        progress: ProgressStore | None = None,
        evaluator: ExerciseEvaluator | None = None,
    ) -> None:
        self.config = config or get_config()
        self.course = course
        self.progress = progress or ProgressStore(
            JsonProgressStorage(self.config.progress_dir),
            score_policy=self.config.score_policy,
        )
        self.evaluator = evaluator or ExerciseEvaluator(
            build_simulator(self.config),
            timeout_ms=self.config.simulator_timeout_ms,
        )
        self.session: LessonSession | None = None
        self.current: CompletionController | None = None
        self.opened_at: float | None = None
        self.running = True

        self.progress.initialize(course.id)

    def print_info(self, message: str) -> None:
        """Imprimir mensaje informativo."""
        print(f"\033[38;5;208mℹ {message}\033[0m")

    def print_success(self, message: str) -> None:
        """Imprimir mensaje de éxito."""
        print(f"\033[32m✓ {message}\033[0m")

    def print_error(self, message: str) -> None:
        """Imprimir mensaje de error."""
        print(f"\033[31m✗ {message}\033[0m")

    def get_input(self, prompt: str = "> ") -> str:
        """Obtener input del usuario."""
        return input(f"\033[38;5;208m{prompt}\033[0m").strip()

    def show_welcome(self) -> None:
        """Mostrar mensaje de bienvenida."""
        print("\033[33m" + "=" * 50 + "\033[0m")
        print(f"\033[33m  {self.config.app_name}: {self.course.title}\033[0m")
        print("\033[33m" + "=" * 50 + "\033[0m")
        self.print_info("Escribe 'help' para ver todos los comandos")
        print()

    async def run(self) -> None:
        """Ejecutar la aplicación."""
        self.show_welcome()
        lesson = self.resume_lesson()
        if lesson:
            self.open_lesson(lesson)

        try:
            while self.running:
                try:
                    command = self.get_input()
                except (KeyboardInterrupt, EOFError):
                    print("\n\033[33m¡Hasta luego!\033[0m")
                    break
                if not command:
                    continue

                try:
                    await self.process_command(command)
                except Exception as e:
                    self.print_error(f"Error: {e}")
        finally:
            self.close_lesson()
            await self.evaluator.simulator.close()

    async def process_command(self, command: str) -> None:
        """Procesar comando del usuario."""
        parts = command.split()
        cmd = parts[0].lower().lstrip("/")
        args = parts[1:]

        handlers = {
            "help": self.cmd_help,
            "lessons": self.cmd_lessons,
            "open": self.cmd_open,
            "next": self.cmd_next,
            "prev": self.cmd_prev,
            "exercise": self.cmd_exercise,
            "hint": self.cmd_hint,
            "solution": self.cmd_solution,
            "run": self.cmd_run,
            "reset": self.cmd_reset,
            "progress": self.cmd_progress,
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "q": self.cmd_quit,
        }

        handler = handlers.get(cmd)
        if handler:
            await handler(args)
        else:
            self.print_error(f"Comando desconocido: {cmd}")
            self.print_info("Escribe 'help' para ver los comandos disponibles")

    # Lecciones

    def resume_lesson(self) -> Lesson | None:
        """Primera lección sin completar en orden de curso (o la primera)."""
        record = self.progress.get_record(self.course.id)
        first = lesson = next(self.course.iter_lessons(), None)
        while lesson is not None:
            if lesson.id not in record.completed_lessons:
                return lesson
            lesson = resolve_next(self.course, lesson.id)
        return first

    def open_lesson(self, lesson: Lesson) -> None:
        """Abrir lección; descarta la sesión anterior y suma su tiempo."""
        self.close_lesson()
        self.session = LessonSession(self.course, lesson, self.evaluator, self.progress)
        self.current = self.session.controllers[0] if self.session.controllers else None
        self.opened_at = time.monotonic()

        self.print_success(f"Lección: {lesson.title}")
        if self.current:
            self.print_info(f"Ejercicio: {self.current.exercise.title}")

    def close_lesson(self) -> None:
        """Cerrar la lección abierta y acumular el tiempo dedicado."""
        if self.session is None or self.opened_at is None:
            return
        minutes = (time.monotonic() - self.opened_at) / 60
        self.progress.add_time_spent(self.course.id, round(minutes, 2))
        self.session = None
        self.current = None
        self.opened_at = None

    # Comandos

    async def cmd_help(self, args) -> None:
        """Mostrar ayuda."""
        print("Comandos:")
        print("  lessons            - Listar lecciones")
        print("  open <id>          - Abrir una lección")
        print("  next / prev        - Lección siguiente / anterior")
        print("  exercise <n>       - Elegir ejercicio de la lección")
        print("  hint <n>           - Ver pista n (-10 puntos)")
        print("  solution           - Ver solución (-50 puntos)")
        print("  run <archivo>      - Evaluar código de un archivo")
        print("  reset              - Reiniciar el ejercicio")
        print("  progress           - Ver progreso del curso")
        print("  quit               - Salir")

    async def cmd_lessons(self, args) -> None:
        """Listar módulos y lecciones con su estado."""
        record = self.progress.get_record(self.course.id)
        for module in self.course.ordered_modules():
            print(f"\033[33m{module.order}. {module.title}\033[0m")
            for lesson in module.ordered_lessons():
                mark = "✅" if lesson.id in record.completed_lessons else "○"
                print(f"  {mark} {lesson.id}: {lesson.title}")

    async def cmd_open(self, args) -> None:
        """Abrir lección por id."""
        if not args:
            self.print_error("Uso: open <lesson-id>")
            return
        lesson = self.course.get_lesson(args[0])
        if lesson is None:
            self.print_error(f"Lección no encontrada: {args[0]}")
            return
        self.open_lesson(lesson)

    async def cmd_next(self, args) -> None:
        """Ir a la lección siguiente."""
        await self._navigate(resolve_next, "Ya estás en la última lección")

    async def cmd_prev(self, args) -> None:
        """Ir a la lección anterior."""
        await self._navigate(resolve_previous, "Ya estás en la primera lección")

    async def _navigate(self, resolver, at_edge: str) -> None:
        if self.session is None:
            self.print_error("No hay lección abierta")
            return
        lesson = resolver(self.course, self.session.lesson.id)
        if lesson is None:
            self.print_info(at_edge)
            return
        self.open_lesson(lesson)

    async def cmd_exercise(self, args) -> None:
        """Elegir ejercicio (1-based) de la lección."""
        if self.session is None or not self.session.controllers:
            self.print_error("La lección no tiene ejercicios")
            return
        try:
            index = int(args[0]) - 1 if args else 0
            if index < 0:
                raise IndexError(index)
            self.current = self.session.controllers[index]
        except (ValueError, IndexError):
            self.print_error(f"Elige un ejercicio entre 1 y {len(self.session.controllers)}")
            return
        exercise = self.current.exercise
        self.print_info(f"Ejercicio: {exercise.title} [{exercise.difficulty}]")
        if exercise.description:
            print(exercise.description)

    async def cmd_hint(self, args) -> None:
        """Revelar una pista (1-based)."""
        if not self._require_exercise():
            return
        try:
            text = self.current.hints.reveal_hint(int(args[0]) - 1 if args else 0)
        except (ValueError, IndexError):
            self.print_error(f"El ejercicio tiene {len(self.current.exercise.hints)} pistas")
            return
        print(f"\033[33m💡 {text}\033[0m")
        self.print_info(f"Puntuación máxima: {self.current.hints.max_score}")

    async def cmd_solution(self, args) -> None:
        """Revelar la solución."""
        if not self._require_exercise():
            return
        try:
            solution = self.current.hints.reveal_solution()
        except ValueError as e:
            self.print_error(str(e))
            return
        print(solution)
        self.print_info(f"Puntuación máxima: {self.current.hints.max_score}")

    async def cmd_run(self, args) -> None:
        """Evaluar el código de un archivo."""
        if not self._require_exercise():
            return
        if not args:
            self.print_error("Uso: run <archivo>")
            return
        path = Path(args[0])
        if not path.exists():
            self.print_error(f"Archivo no encontrado: {path}")
            return

        result = await self.current.evaluate(path.read_text(encoding="utf-8"))
        self.show_result(result)

    async def cmd_reset(self, args) -> None:
        """Reiniciar el ejercicio actual."""
        if not self._require_exercise():
            return
        self.current.reset()
        self.print_info("Ejercicio reiniciado")

    async def cmd_progress(self, args) -> None:
        """Mostrar progreso del curso."""
        record = self.progress.get_record(self.course.id)
        stats = progress_stats(self.course, record)

        print(f"\033[32m📊 Progreso de '{self.course.title}'\033[0m")
        print(
            f"\033[33mProgreso general: {stats.completion_rate:.0f}%\033[0m "
            f"({stats.completed_lessons}/{stats.total_lessons} lecciones)"
        )
        print(f"  Puntuación media: {stats.average_score:.1f}")
        print(f"  Tiempo dedicado: {stats.time_spent_minutes:.0f} min")
        for module_id, percentage in module_completion(self.course, record).items():
            print(f"  {module_id}: {percentage:.0f}%")

    async def cmd_quit(self, args) -> None:
        """Salir."""
        self.running = False

    def _require_exercise(self) -> bool:
        if self.current is None:
            self.print_error("No hay ejercicio seleccionado")
            return False
        return True

    def show_result(self, result: EvaluationResult) -> None:
        """Mostrar el resultado de una evaluación."""
        if result.stale:
            return
        if result.validation_errors:
            self.print_error("Errores de validación:")
            for error in result.validation_errors:
                print(f"  - {error}")
            return

        execution = result.execution_result
        if execution and execution.output:
            print(execution.output)
        if execution and execution.error:
            self.print_error(execution.error)

        if result.passed:
            self.print_success(f"✅ Aprobado - Score: {result.score}")
        elif result.score is not None:
            self.print_info(f"❌ No aprobado - Score: {result.score} (necesitas más de 70)")
        else:
            self.print_info("❌ La ejecución falló")
