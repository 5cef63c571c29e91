"""
Ejecución de procesos externos (pg_dump, pg_restore)

Los servicios reciben el runner por inyección, así los tests pueden
sustituirlo por uno falso sin lanzar binarios reales.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List

from .logger import LoggerService
from .models import ProcessResult


class ProcessRunner(ABC):
    """Interfaz para ejecutar un comando externo"""

    @abstractmethod
    async def run(self, command: List[str], env: Dict[str, str]) -> ProcessResult:
        """
        Ejecuta el comando y espera a que termine

        Args:
            command: Lista argv (sin shell)
            env: Entorno completo del proceso hijo

        Returns:
            Resultado con código de salida y salidas capturadas

        Raises:
            OSError: si el ejecutable no existe o no se puede lanzar
        """
        pass


class AsyncProcessRunner(ProcessRunner):
    """Runner por defecto basado en asyncio.create_subprocess_exec"""

    def __init__(self):
        self.logger = LoggerService.get_logger("ProcessRunner")

    async def run(self, command: List[str], env: Dict[str, str]) -> ProcessResult:
        self.logger.debug(f"Ejecutando: {command[0]}")
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        stdout, stderr = await process.communicate()

        return ProcessResult(
            returncode=process.returncode,
            stdout=stdout.decode('utf-8', errors='replace'),
            stderr=stderr.decode('utf-8', errors='replace'),
        )
