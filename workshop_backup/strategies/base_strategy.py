"""
Estrategia base para backups (Strategy Pattern)
"""
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List
from ..logger import LoggerService
from ..models import ConnectionDescriptor


class BackupStrategy(ABC):
    """Interfaz abstracta para estrategias de backup (Open/Closed Principle)"""

    # Variable de entorno con la que la herramienta recibe el password
    password_env_var = ""

    def __init__(self, dump_tool: str, restore_tool: str):
        """
        Inicializa la estrategia

        Args:
            dump_tool: Ejecutable de volcado
            restore_tool: Ejecutable de restauración
        """
        self.dump_tool = dump_tool
        self.restore_tool = restore_tool
        self.logger = LoggerService.get_logger(self.__class__.__name__)

    @abstractmethod
    def dump_command(self, conn: ConnectionDescriptor, output_file: Path) -> List[str]:
        """
        Construye el comando de volcado

        Args:
            conn: Datos de conexión
            output_file: Archivo de salida para el backup

        Returns:
            Lista argv, sin el password
        """
        pass

    @abstractmethod
    def restore_command(self, conn: ConnectionDescriptor, backup_file: Path) -> List[str]:
        """
        Construye el comando de restauración

        Args:
            conn: Datos de conexión
            backup_file: Archivo de backup a restaurar

        Returns:
            Lista argv, sin el password
        """
        pass

    def build_env(self, conn: ConnectionDescriptor) -> Dict[str, str]:
        """
        Entorno del proceso hijo: el entorno actual más el password

        El password nunca va en argv (visible en la lista de procesos).
        """
        env = os.environ.copy()
        if self.password_env_var and conn.password:
            env[self.password_env_var] = conn.password
        return env
