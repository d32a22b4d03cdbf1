"""Excepciones del dominio."""


class TutorLabError(Exception):
    """Error base de tutor-lab."""

    pass


class CourseValidationError(TutorLabError):
    """Contenido de curso con forma inválida."""

    pass


class ExecutionTransportError(TutorLabError):
    """No se pudo completar la llamada al simulador de ejecución."""

    pass


class StorageError(TutorLabError):
    """Error en la capa de almacenamiento de progreso."""

    pass
