"""
Modelos de datos del sistema
"""
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import Config


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Datos de conexión extraídos de DATABASE_URL (nunca se persisten)"""
    host: str
    port: str
    user: str
    password: str = field(repr=False)
    database: str
    scheme: str = "postgresql"


@dataclass
class BackupRecord:
    """Metadatos de un archivo de backup en disco"""
    filename: str
    filepath: Path
    size: int
    created: datetime

    def __str__(self):
        return f"{self.filename} ({self.size} bytes, {self.created.isoformat()})"


@dataclass
class ProcessResult:
    """Resultado de ejecutar un proceso externo"""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class BackupSettings:
    """Configuración de backups"""
    database_url: Optional[str] = None
    backup_dir: Path = field(default_factory=lambda: Config.BACKUP_DIR)
    max_backups: int = Config.DEFAULT_MAX_BACKUPS
    schedule: str = Config.DEFAULT_SCHEDULE
    auto_backup_enabled: bool = False
    timezone: str = Config.DEFAULT_TIMEZONE
    pg_dump_path: str = Config.PG_DUMP_PATH
    pg_restore_path: str = Config.PG_RESTORE_PATH

    def __post_init__(self):
        """Validación después de inicialización"""
        self.backup_dir = Path(self.backup_dir)
        if self.max_backups < 1:
            raise ValueError("max_backups debe ser mayor a 0")
        if not self.schedule or not self.schedule.strip():
            raise ValueError("La expresión de schedule no puede estar vacía")
