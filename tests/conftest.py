"""Fixtures compartidas."""

from __future__ import annotations

import asyncio

import pytest

from tutor_lab.core.course import Course
from tutor_lab.core.persistence import MemoryProgressStorage, ProgressStore
from tutor_lab.labs.simulator import ExecutionRequest, ExecutionResult, ExecutionSimulator

HELLO_WORLD = """using System;

class Program
{
    static void Main(string[] args)
    {
        string name = "World";
        Console.WriteLine($"Hello, {name}!");
    }
}
"""


class FakeSimulator(ExecutionSimulator):
    """Simulador controlable que registra las llamadas."""

    def __init__(self, result: ExecutionResult | None = None, delay: float = 0.0) -> None:
        self.result = result or ExecutionResult(output="Hello, World!", success=True, execution_time_ms=5)
        self.delay = delay
        self.calls: list[tuple[str, ExecutionRequest]] = []
        self.closed = False

    async def execute(self, code: str, request: ExecutionRequest) -> ExecutionResult:
        self.calls.append((code, request))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result

    async def close(self) -> None:
        self.closed = True


def course_data() -> dict:
    """Curso A(a1, a2), B(b1) con lecciones desordenadas en A."""
    return {
        "id": "csharp-basics",
        "title": "C# Básico",
        "level": "beginner",
        "modules": [
            {
                "id": "B",
                "title": "Control de flujo",
                "order": 2,
                "lessons": [
                    {"id": "b1", "title": "If", "order": 1},
                ],
            },
            {
                "id": "A",
                "title": "Primeros pasos",
                "order": 1,
                "lessons": [
                    {"id": "a2", "title": "Variables", "order": 2},
                    {
                        "id": "a1",
                        "title": "Hola mundo",
                        "order": 1,
                        "exercises": [
                            {
                                "id": "hello",
                                "title": "Hola mundo",
                                "difficulty": "easy",
                                "starter_code": "using System;\n",
                                "solution": HELLO_WORLD,
                                "hints": ["Usa Console.WriteLine", "Declara Main", "No olvides ;"],
                                "estimated_time": 10,
                            },
                            {
                                "id": "hello-2",
                                "title": "Saludo",
                                "difficulty": "medium",
                            },
                        ],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def course() -> Course:
    return Course.from_dict(course_data())


@pytest.fixture
def storage() -> MemoryProgressStorage:
    return MemoryProgressStorage()


@pytest.fixture
def progress(storage: MemoryProgressStorage) -> ProgressStore:
    return ProgressStore(storage)


@pytest.fixture
def simulator() -> FakeSimulator:
    return FakeSimulator()
