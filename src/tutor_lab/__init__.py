"""Tutor Lab: evaluación de ejercicios y progreso de cursos de programación."""

__version__ = "0.1.0"
