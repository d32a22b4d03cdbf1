"""Configuración global de la aplicación."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_data_dir

SCORE_POLICIES = ("best", "latest")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Configuración inmutable de la aplicación."""

    # Simulador de ejecución
    simulator_url: str = "http://localhost:3001"
    simulator_timeout_ms: int = 15000
    use_static_fallback: bool = True

    # Progreso
    score_policy: str = "best"  # best, latest

    # Logging
    log_level: str = "WARNING"

    # Paths
    data_dir: Path = Path(user_data_dir("tutor-lab", "tutor-lab"))
    progress_dir: Path = field(init=False)

    # App
    app_name: str = "Tutor Lab"
    version: str = "0.1.0"

    def __post_init__(self) -> None:
        if self.score_policy not in SCORE_POLICIES:
            raise ValueError(
                f"score_policy inválida: {self.score_policy!r} (usa {', '.join(SCORE_POLICIES)})"
            )
        if self.simulator_timeout_ms <= 0:
            raise ValueError("simulator_timeout_ms debe ser positivo")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level inválido: {self.log_level!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())
        object.__setattr__(self, "data_dir", Path(self.data_dir))
        object.__setattr__(self, "progress_dir", self.data_dir / "progress")

    @classmethod
    def from_env(cls) -> Config:
        """Crear configuración desde variables de entorno."""
        data_dir = os.getenv("TUTOR_DATA_DIR")

        return cls(
            simulator_url=os.getenv("TUTOR_SIMULATOR_URL", "http://localhost:3001"),
            simulator_timeout_ms=int(os.getenv("TUTOR_SIMULATOR_TIMEOUT_MS", "15000")),
            use_static_fallback=_env_bool("TUTOR_STATIC_FALLBACK", True),
            score_policy=os.getenv("TUTOR_SCORE_POLICY", "best"),
            log_level=os.getenv("TUTOR_LOG_LEVEL", "WARNING"),
            data_dir=Path(data_dir) if data_dir else Path(user_data_dir("tutor-lab", "tutor-lab")),
        )

    def ensure_dirs(self) -> None:
        """Crear directorios necesarios si no existen."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.progress_dir.mkdir(parents=True, exist_ok=True)


# Instancia global
_config: Config | None = None


def get_config() -> Config:
    """Obtener instancia de configuración (singleton)."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def set_config(config: Config) -> None:
    """Establecer configuración (para tests)."""
    global _config
    _config = config
