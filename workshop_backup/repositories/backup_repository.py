"""
Repositorio de archivos de backup en disco
"""
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from ..config import Config
from ..exceptions import BackupError, BackupNotFound
from ..logger import LoggerService
from ..models import BackupRecord


def _created_at(stats: os.stat_result) -> datetime:
    # st_birthtime no existe en Linux; el volcado se escribe una sola vez
    return datetime.fromtimestamp(stats.st_mtime).astimezone()


class BackupRepository:
    """Acceso al directorio de backups: listar, consultar y eliminar archivos"""

    def __init__(self, backup_dir: Optional[Path] = None):
        """
        Args:
            backup_dir: Directorio de backups (por defecto Config.BACKUP_DIR)
        """
        self.backup_dir = Path(backup_dir) if backup_dir else Config.BACKUP_DIR
        self.logger = LoggerService.get_logger("BackupRepository")

    def ensure_backup_dir(self) -> Path:
        """Crea el directorio de backups si no existe (idempotente)"""
        if not self.backup_dir.exists():
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            self.logger.info(f"Directorio de backups creado: {self.backup_dir}")
        return self.backup_dir

    def path_for(self, filename: str) -> Path:
        """
        Ruta de un backup dentro del directorio

        Raises:
            BackupNotFound: si el nombre intenta salir del directorio
        """
        if not filename or Path(filename).name != filename or filename in ('.', '..'):
            raise BackupNotFound(filename)
        return self.backup_dir / filename

    def _record(self, path: Path) -> BackupRecord:
        stats = path.stat()
        return BackupRecord(
            filename=path.name,
            filepath=path,
            size=stats.st_size,
            created=_created_at(stats),
        )

    def list_backups(self) -> List[BackupRecord]:
        """
        Lista los backups existentes, del más reciente al más antiguo

        Returns:
            Lista de BackupRecord

        Raises:
            BackupError: si no se puede leer el directorio
        """
        self.ensure_backup_dir()

        try:
            records = []
            for path in self.backup_dir.glob(f"*{Config.BACKUP_SUFFIX}"):
                if not path.is_file():
                    continue
                try:
                    records.append(self._record(path))
                except FileNotFoundError:
                    # Eliminado entre el listado y el stat
                    continue
        except OSError as e:
            self.logger.error(f"Error al listar backups: {e}")
            raise BackupError(f"Error al listar backups: {e}") from e

        # A igual fecha, el nombre (con timestamp) desempata
        records.sort(key=lambda r: (r.created, r.filename), reverse=True)
        return records

    def get_backup_info(self, filename: str) -> BackupRecord:
        """
        Obtiene los metadatos de un backup

        Raises:
            BackupNotFound: si el archivo no existe
        """
        path = self.path_for(filename)
        if not path.is_file():
            raise BackupNotFound(filename)
        try:
            return self._record(path)
        except FileNotFoundError as e:
            raise BackupNotFound(filename) from e

    def delete_backup(self, filename: str) -> None:
        """
        Elimina un backup

        Raises:
            BackupNotFound: si el archivo no existe
            BackupError: si el sistema operativo rechaza la eliminación
        """
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise BackupNotFound(filename) from e
        except OSError as e:
            self.logger.error(f"Error al eliminar backup {filename}: {e}")
            raise BackupError(f"Error al eliminar backup {filename}: {e}") from e

        self.logger.info(f"Backup eliminado: {filename}")

    def get_backup_stats(self) -> dict:
        """
        Obtiene estadísticas de los backups

        Returns:
            Diccionario con total_files, total_size_bytes, oldest_backup y newest_backup
        """
        records = self.list_backups()
        if not records:
            return {
                'total_files': 0,
                'total_size_bytes': 0,
                'oldest_backup': None,
                'newest_backup': None
            }

        return {
            'total_files': len(records),
            'total_size_bytes': sum(r.size for r in records),
            'oldest_backup': records[-1].created,
            'newest_backup': records[0].created
        }
