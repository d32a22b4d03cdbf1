"""Punto de entrada principal."""

import asyncio
import logging
import sys


def main(argv: list[str] | None = None) -> int:
    """Ejecutar aplicación."""
    from .config import get_config
    from .core.course import Course
    from .errors import CourseValidationError
    from .tui.app import TutorApp

    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Uso: tutor-lab <course.yaml | directorio del curso>", file=sys.stderr)
        return 2

    try:
        config = get_config()
    except ValueError as e:
        print(f"Error de configuración: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        course = Course.load(args[0])
    except (FileNotFoundError, CourseValidationError) as e:
        print(f"Error cargando curso: {e}", file=sys.stderr)
        return 1

    app = TutorApp(course, config=config)
    asyncio.run(app.run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
