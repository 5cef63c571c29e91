"""
Repositorio para manejar configuración (Dependency Inversion)
"""
import os
from pathlib import Path
from typing import Mapping, Optional
from ..config import Config
from ..logger import LoggerService
from ..models import BackupSettings


class ConfigRepository:
    """Repositorio que traduce variables de entorno a BackupSettings"""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        """
        Inicializa el repositorio de configuración

        Args:
            env: Variables de entorno a usar (por defecto os.environ)
        """
        self.env = env if env is not None else os.environ
        self.logger = LoggerService.get_logger("ConfigRepository")

    def get_backup_settings(self) -> BackupSettings:
        """
        Obtiene configuración de backups

        Los valores inválidos se reemplazan por el valor por defecto
        con una advertencia en el log.

        Returns:
            Objeto BackupSettings
        """
        backup_dir = self.env.get('BACKUP_DIR')
        schedule = self.env.get('BACKUP_SCHEDULE', '').strip() or Config.DEFAULT_SCHEDULE

        return BackupSettings(
            database_url=self.env.get('DATABASE_URL') or None,
            backup_dir=Path(backup_dir) if backup_dir else Config.BACKUP_DIR,
            max_backups=self._get_max_backups(),
            schedule=schedule,
            auto_backup_enabled=self.env.get('AUTO_BACKUP_ENABLED', '').strip().lower() == 'true',
            timezone=self.env.get('TZ', '').strip() or Config.DEFAULT_TIMEZONE,
            pg_dump_path=self.env.get('PG_DUMP_PATH') or Config.PG_DUMP_PATH,
            pg_restore_path=self.env.get('PG_RESTORE_PATH') or Config.PG_RESTORE_PATH,
        )

    def _get_max_backups(self) -> int:
        """
        Resuelve MAX_BACKUPS; ausente, no numérico o menor a 1 usa el valor por defecto

        Returns:
            Cantidad máxima de backups a conservar
        """
        raw = self.env.get('MAX_BACKUPS')
        if raw is None or not raw.strip():
            return Config.DEFAULT_MAX_BACKUPS

        try:
            value = int(raw)
        except ValueError:
            self.logger.warning(
                f"MAX_BACKUPS inválido ({raw!r}), se usa {Config.DEFAULT_MAX_BACKUPS}"
            )
            return Config.DEFAULT_MAX_BACKUPS

        if value < 1:
            self.logger.warning(
                f"MAX_BACKUPS debe ser mayor a 0 ({value}), se usa {Config.DEFAULT_MAX_BACKUPS}"
            )
            return Config.DEFAULT_MAX_BACKUPS
        return value

    def create_env_example(self, path: Path) -> bool:
        """
        Crea un archivo .env.example con todas las variables soportadas

        Args:
            path: Ruta del archivo a crear

        Returns:
            True si se creó exitosamente
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding='utf-8') as f:
                f.write(Config.ENV_EXAMPLE)
            self.logger.info(f"Archivo de ejemplo creado: {path}")
            return True
        except OSError as e:
            self.logger.error(f"Error al crear {path}: {e}")
            return False
