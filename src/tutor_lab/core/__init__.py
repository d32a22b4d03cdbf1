"""Core: modelos de curso, progreso, persistencia y navegación."""

from .course import CodeExample, Course, Exercise, Lesson, Module
from .navigation import (
    ProgressStats,
    completion_percentage,
    module_completion,
    progress_stats,
    resolve_next,
    resolve_previous,
)
from .persistence import JsonProgressStorage, MemoryProgressStorage, ProgressStorage, ProgressStore
from .state import ProgressRecord

__all__ = [
    "CodeExample",
    "Course",
    "Exercise",
    "Lesson",
    "Module",
    "ProgressRecord",
    "ProgressStats",
    "ProgressStorage",
    "ProgressStore",
    "JsonProgressStorage",
    "MemoryProgressStorage",
    "completion_percentage",
    "module_completion",
    "progress_stats",
    "resolve_next",
    "resolve_previous",
]
