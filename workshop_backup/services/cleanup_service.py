"""
Servicio para limpiar backups antiguos (Single Responsibility)
"""
from ..config import Config
from ..exceptions import BackupError, PruneDeletionFailed
from ..logger import LoggerService
from ..repositories.backup_repository import BackupRepository
from ..utils import format_file_size


class CleanupService:
    """Servicio de retención: conserva solo los N backups más recientes"""

    def __init__(self, repository: BackupRepository, max_backups: int = Config.DEFAULT_MAX_BACKUPS):
        """
        Inicializa el servicio de limpieza

        Args:
            repository: Repositorio del directorio de backups
            max_backups: Cantidad máxima de backups a conservar
        """
        if max_backups < 1:
            raise ValueError("max_backups debe ser mayor a 0")
        self.repository = repository
        self.max_backups = max_backups
        self.logger = LoggerService.get_logger("CleanupService")

    def prune_old_backups(self) -> int:
        """
        Elimina los backups que exceden max_backups, empezando por el más antiguo

        Un error al eliminar un archivo se registra y no detiene al resto.

        Returns:
            Cantidad de archivos eliminados
        """
        backups = self.repository.list_backups()

        if len(backups) <= self.max_backups:
            self.logger.debug(
                f"No hay backups antiguos para eliminar ({len(backups)}/{self.max_backups})"
            )
            return 0

        # list_backups devuelve del más reciente al más antiguo
        to_delete = list(reversed(backups[self.max_backups:]))
        deleted_count = 0

        for backup in to_delete:
            try:
                self.repository.delete_backup(backup.filename)
                deleted_count += 1
                self.logger.info(
                    f"Eliminado backup antiguo: {backup.filename} "
                    f"({format_file_size(backup.size)})"
                )
            except BackupError as e:
                failure = PruneDeletionFailed(backup.filename, str(e))
                self.logger.error(str(failure))

        self.logger.info(
            f"Limpieza completada: {deleted_count} archivo(s) eliminado(s)"
        )
        return deleted_count

    def get_backup_stats(self) -> dict:
        """
        Obtiene estadísticas de los backups

        Returns:
            Diccionario con estadísticas y la retención configurada
        """
        stats = self.repository.get_backup_stats()
        stats['max_backups'] = self.max_backups
        return stats
