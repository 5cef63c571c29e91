"""
Estrategias de backup para diferentes motores de BD
"""
from .base_strategy import BackupStrategy
from .postgresql_strategy import PostgreSQLBackupStrategy

__all__ = [
    'BackupStrategy',
    'PostgreSQLBackupStrategy'
]
