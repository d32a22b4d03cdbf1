"""Simuladores de ejecución de código.

El motor trata la ejecución como una caja negra: recibe código y una
``ExecutionRequest`` y devuelve un ``ExecutionResult``. Un timeout nunca
se propaga como excepción, se devuelve como resultado fallido.
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from ..errors import ExecutionTransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionRequest:
    """Opciones de una ejecución simulada."""

    language: str = "csharp"
    include_compile_check: bool = True
    timeout_ms: int = 15000


@dataclass
class ExecutionResult:
    """Resultado de una ejecución simulada (no se persiste)."""

    output: str
    success: bool
    execution_time_ms: float = 0.0
    error: str | None = None
    memory_usage_mb: float | None = None

    @classmethod
    def failure(cls, error: str, execution_time_ms: float = 0.0) -> ExecutionResult:
        """Resultado fallido con un mensaje de diagnóstico."""
        return cls(output="", success=False, execution_time_ms=execution_time_ms, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convertir a diccionario."""
        return {
            "output": self.output,
            "error": self.error,
            "executionTimeMs": self.execution_time_ms,
            "success": self.success,
            "memoryUsageMb": self.memory_usage_mb,
        }


def timeout_message(timeout_ms: int) -> str:
    return f"Timeout: la ejecución tardó más de {timeout_ms} ms"


class ExecutionSimulator(ABC):
    """Interfaz del colaborador externo de ejecución."""

    @abstractmethod
    async def execute(self, code: str, request: ExecutionRequest) -> ExecutionResult:
        """Ejecutar (simular) el código."""
        pass

    async def close(self) -> None:
        """Liberar recursos."""
        pass


class StaticExecutionSimulator(ExecutionSimulator):
    """Análisis estático de mejor esfuerzo cuando no hay servicio remoto."""

    CSHARP_OUTPUT = re.compile(r"Console\.Write(?:Line)?\s*\(\s*(.*?)\s*\)\s*;", re.DOTALL)
    JS_OUTPUT = re.compile(r"console\.log\s*\(\s*(.*?)\s*\)\s*;?", re.DOTALL)
    STRING_LITERAL = re.compile(r"""^\$?@?(["'`])(.*)\1$""", re.DOTALL)

    async def execute(self, code: str, request: ExecutionRequest) -> ExecutionResult:
        start = time.perf_counter()
        output, error = self.analyze(code, request.language)
        elapsed = (time.perf_counter() - start) * 1000

        return ExecutionResult(
            output=output,
            success=error is None,
            execution_time_ms=elapsed,
            error=error,
            memory_usage_mb=64.0,
        )

    def analyze(self, code: str, language: str) -> tuple[str, str | None]:
        """Devolver (salida esperada, error o None)."""
        language = language.lower()
        lines: list[str] = []
        error: str | None = None

        if language in ("csharp", "c#", "cs"):
            calls = self.CSHARP_OUTPUT.findall(code)
            lines = [self._render_argument(arg) for arg in calls]
            if calls and "using System" not in code:
                error = "Se requiere using System;"
            elif calls and "Main" not in code:
                error = "No se encontró el método Main"
        elif language in ("javascript", "typescript", "js", "ts"):
            lines = [self._render_argument(arg) for arg in self.JS_OUTPUT.findall(code)]

        output = "\n".join(lines) if lines else ("" if error else "(sin salida)")
        return output, error

    def _render_argument(self, argument: str) -> str:
        match = self.STRING_LITERAL.match(argument.strip())
        if match:
            return match.group(2)
        return f"[{argument.strip()}]"


class HttpExecutionSimulator(ExecutionSimulator):
    """Cliente HTTP para el servicio de ejecución simulada."""

    ENDPOINT = "/api/ai/execute-code"

    def __init__(
        self,
        base_url: str,
        fallback: ExecutionSimulator | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Inicializar cliente."""
        self.base_url = base_url.rstrip("/")
        self.fallback = fallback
        self.client = client or httpx.AsyncClient()

    async def execute(self, code: str, request: ExecutionRequest) -> ExecutionResult:
        payload = {
            "code": code,
            "language": request.language,
            "options": {
                "includeCompileCheck": request.include_compile_check,
                "timeout": request.timeout_ms,
            },
        }
        start = time.perf_counter()
        logger.debug("POST %s%s (%d bytes)", self.base_url, self.ENDPOINT, len(code))

        try:
            response = await self.client.post(
                f"{self.base_url}{self.ENDPOINT}",
                json=payload,
                timeout=request.timeout_ms / 1000,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            elapsed = (time.perf_counter() - start) * 1000
            return ExecutionResult.failure(timeout_message(request.timeout_ms), elapsed)
        except (httpx.HTTPError, ValueError) as e:
            if self.fallback is None:
                raise ExecutionTransportError(f"servicio de ejecución no disponible ({e})") from e
            logger.warning("Servicio de ejecución no disponible, usando análisis estático: %s", e)
            return await self.fallback.execute(code, request)

        elapsed = (time.perf_counter() - start) * 1000
        return self._parse_response(data, elapsed)

    def _parse_response(self, data: Any, elapsed_ms: float) -> ExecutionResult:
        if not isinstance(data, dict):
            raise ExecutionTransportError("Respuesta de ejecución con formato inválido")

        memory = data.get("memoryUsage")
        return ExecutionResult(
            output=data.get("output") or "",
            error=data.get("error") or None,
            execution_time_ms=data.get("executionTime") or elapsed_ms,
            success=bool(data.get("isSuccess", False)),
            memory_usage_mb=float(memory) if isinstance(memory, (int, float)) else None,
        )

    async def close(self) -> None:
        """Cerrar cliente HTTP."""
        await self.client.aclose()
        if self.fallback is not None:
            await self.fallback.close()
