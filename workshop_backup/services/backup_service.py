"""
Servicio principal que orquesta los backups
"""
import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional
from ..config import Config
from ..connection import parse_database_url
from ..exceptions import (
    BackupError,
    BackupFailed,
    ConfigurationError,
    MalformedConnectionString,
    RestoreFailed,
)
from ..factories.strategy_factory import BackupStrategyFactory
from ..logger import LoggerService
from ..models import BackupRecord, BackupSettings, ConnectionDescriptor
from ..repositories.backup_repository import BackupRepository
from ..runners import AsyncProcessRunner, ProcessRunner
from ..strategies.base_strategy import BackupStrategy
from ..utils import format_file_size
from .cleanup_service import CleanupService


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_backup_filename(instant: datetime) -> str:
    """
    Nombre de archivo para un backup creado en `instant`

    ISO-8601 en UTC con milisegundos, reemplazando ':' y '.' por '-':
    backup-2024-03-01T02-00-00-123Z.sql
    """
    instant = instant.astimezone(timezone.utc)
    iso = instant.strftime('%Y-%m-%dT%H:%M:%S') + f".{instant.microsecond // 1000:03d}Z"
    stamp = iso.replace(':', '-').replace('.', '-')
    return f"{Config.BACKUP_PREFIX}{stamp}{Config.BACKUP_SUFFIX}"


def _tool_message(stderr: str, default: str) -> str:
    lines = [line for line in (stderr or '').strip().splitlines() if line.strip()]
    # pg_dump -v escribe progreso en stderr; el error real va al final
    return lines[-1] if lines else default


class BackupService:
    """Servicio principal: crear, restaurar, listar y eliminar backups"""

    def __init__(
        self,
        settings: BackupSettings,
        runner: Optional[ProcessRunner] = None,
        repository: Optional[BackupRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Inicializa el servicio de backup

        Args:
            settings: Configuración de backups
            runner: Ejecutor de procesos externos (por defecto asyncio)
            repository: Repositorio del directorio de backups
            clock: Fuente de la hora actual, usada para el nombre del archivo
        """
        self.settings = settings
        self.runner = runner or AsyncProcessRunner()
        self.repository = repository or BackupRepository(settings.backup_dir)
        self.clock = clock or _utc_now
        self.logger = LoggerService.get_logger("BackupService")

        self.cleanup_service = CleanupService(self.repository, settings.max_backups)

        # Serializa la creación (volcado + limpieza) dentro del proceso
        self._backup_lock = asyncio.Lock()

    def _resolve_connection(self) -> ConnectionDescriptor:
        """
        Lee y descompone DATABASE_URL

        Raises:
            ConfigurationError: si DATABASE_URL no está definida
            MalformedConnectionString: si la URL no tiene el formato esperado
        """
        if not self.settings.database_url:
            raise ConfigurationError("DATABASE_URL no está definida")
        return parse_database_url(self.settings.database_url)

    def _strategy_for(self, conn: ConnectionDescriptor) -> BackupStrategy:
        strategy = BackupStrategyFactory.create(
            conn.scheme,
            self.settings.pg_dump_path,
            self.settings.pg_restore_path,
        )
        if not strategy:
            supported = ', '.join(BackupStrategyFactory.get_supported_schemes())
            raise MalformedConnectionString(
                f"Esquema de base de datos no soportado: {conn.scheme} (soportados: {supported})"
            )
        return strategy

    def _discard_partial(self, output_file: Path):
        """Elimina la salida parcial de un volcado fallido"""
        try:
            if output_file.exists():
                output_file.unlink()
                self.logger.info(f"Archivo parcial eliminado: {output_file.name}")
        except OSError as e:
            self.logger.warning(f"No se pudo eliminar el archivo parcial {output_file.name}: {e}")

    async def create_backup(self) -> BackupRecord:
        """
        Crea un backup de la base de datos y aplica la retención

        Returns:
            BackupRecord del archivo creado

        Raises:
            ConfigurationError: si DATABASE_URL no está definida
            MalformedConnectionString: si DATABASE_URL es inválida
            BackupFailed: si pg_dump falla o no se puede ejecutar
        """
        async with self._backup_lock:
            self.repository.ensure_backup_dir()

            conn = self._resolve_connection()
            strategy = self._strategy_for(conn)

            instant = self.clock()
            filename = build_backup_filename(instant)
            output_file = self.repository.path_for(filename)

            self.logger.info(f"Iniciando backup de {conn.database} en {conn.host}:{conn.port}...")
            start_time = time.monotonic()

            try:
                result = await self.runner.run(
                    strategy.dump_command(conn, output_file),
                    strategy.build_env(conn),
                )
            except OSError as e:
                self._discard_partial(output_file)
                self.logger.error(f"Falló la creación del backup: {e}")
                raise BackupFailed(str(e)) from e

            if not result.success:
                self._discard_partial(output_file)
                message = _tool_message(result.stderr, f"{strategy.dump_tool} terminó con código {result.returncode}")
                self.logger.error(f"Falló la creación del backup: {message}")
                raise BackupFailed(message, stderr=result.stderr)

            try:
                stats = output_file.stat()
            except FileNotFoundError as e:
                message = f"{strategy.dump_tool} no generó el archivo {filename}"
                self.logger.error(f"Falló la creación del backup: {message}")
                raise BackupFailed(message) from e

            record = BackupRecord(
                filename=filename,
                filepath=output_file,
                size=stats.st_size,
                created=instant,
            )
            duration = time.monotonic() - start_time
            self.logger.info(
                f"Backup creado exitosamente: {filename} "
                f"({format_file_size(record.size)}, {duration:.2f}s)"
            )

            try:
                self.cleanup_service.prune_old_backups()
            except BackupError as e:
                self.logger.error(f"Error durante la limpieza de backups antiguos: {e}")

            return record

    async def restore_backup(self, filename: str) -> None:
        """
        Restaura la base de datos desde un backup (operación destructiva)

        Los objetos existentes se eliminan antes de recrearlos. La confirmación
        previa es responsabilidad del llamador.

        Args:
            filename: Nombre del archivo en el directorio de backups

        Raises:
            BackupNotFound: si el archivo no existe (no se ejecuta ningún proceso)
            ConfigurationError: si DATABASE_URL no está definida
            MalformedConnectionString: si DATABASE_URL es inválida
            RestoreFailed: si pg_restore falla o no se puede ejecutar
        """
        backup = self.repository.get_backup_info(filename)

        conn = self._resolve_connection()
        strategy = self._strategy_for(conn)

        self.logger.warning(f"Restaurando {conn.database} desde {backup.filename}...")

        try:
            result = await self.runner.run(
                strategy.restore_command(conn, backup.filepath),
                strategy.build_env(conn),
            )
        except OSError as e:
            self.logger.error(f"Falló la restauración de la base de datos: {e}")
            raise RestoreFailed(str(e)) from e

        if not result.success:
            message = _tool_message(result.stderr, f"{strategy.restore_tool} terminó con código {result.returncode}")
            self.logger.error(f"Falló la restauración de la base de datos: {message}")
            raise RestoreFailed(message, stderr=result.stderr)

        self.logger.info(f"Base de datos restaurada exitosamente desde: {backup.filename}")

    def prune_old_backups(self) -> int:
        """Aplica la retención configurada; devuelve los archivos eliminados"""
        return self.cleanup_service.prune_old_backups()

    def list_backups(self) -> List[BackupRecord]:
        return self.repository.list_backups()

    def get_backup_info(self, filename: str) -> BackupRecord:
        return self.repository.get_backup_info(filename)

    def delete_backup(self, filename: str) -> None:
        self.repository.delete_backup(filename)

    def get_backup_stats(self) -> dict:
        return self.cleanup_service.get_backup_stats()
