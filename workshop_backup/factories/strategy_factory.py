"""
Factory para crear estrategias de backup
"""
from typing import Optional
from ..strategies.base_strategy import BackupStrategy
from ..strategies.postgresql_strategy import PostgreSQLBackupStrategy


class BackupStrategyFactory:
    """Factory para crear estrategias de backup (Factory Pattern)"""

    # Mapeo de esquemas de URL a estrategias
    _strategies = {
        'postgresql': PostgreSQLBackupStrategy,
        'postgres': PostgreSQLBackupStrategy,
    }

    @classmethod
    def create(cls, scheme: str, dump_tool: str, restore_tool: str) -> Optional[BackupStrategy]:
        """
        Crea una estrategia de backup según el esquema de DATABASE_URL

        Args:
            scheme: Esquema de la URL (postgresql, postgres)
            dump_tool: Ejecutable de volcado
            restore_tool: Ejecutable de restauración

        Returns:
            Instancia de BackupStrategy o None si el esquema no es soportado
        """
        strategy_class = cls._strategies.get(scheme.lower())
        if strategy_class:
            return strategy_class(dump_tool, restore_tool)
        return None

    @classmethod
    def get_supported_schemes(cls) -> list:
        """Esquemas de DATABASE_URL con estrategia, para mensajes de error"""
        return sorted(cls._strategies)
