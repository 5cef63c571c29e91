"""
Estrategia de backup para PostgreSQL
"""
from pathlib import Path
from typing import List
from .base_strategy import BackupStrategy
from ..models import ConnectionDescriptor


class PostgreSQLBackupStrategy(BackupStrategy):
    """Estrategia de backup para PostgreSQL (pg_dump / pg_restore)"""

    password_env_var = "PGPASSWORD"

    def dump_command(self, conn: ConnectionDescriptor, output_file: Path) -> List[str]:
        return [
            self.dump_tool,
            '-h', conn.host,
            '-p', conn.port,
            '-U', conn.user,
            '-F', 'c',      # Formato custom (comprimido)
            '-b',           # Incluir large objects
            '-v',
            '-f', str(output_file),
            conn.database,
        ]

    def restore_command(self, conn: ConnectionDescriptor, backup_file: Path) -> List[str]:
        return [
            self.restore_tool,
            '-h', conn.host,
            '-p', conn.port,
            '-U', conn.user,
            '-d', conn.database,
            '-c',           # DROP de los objetos antes de recrearlos
            '-v',
            str(backup_file),
        ]
