#!/usr/bin/env python3
"""
Servicio de backups de la base de datos del taller
Punto de entrada principal

Uso:
    python main.py                      # Modo scheduler (automático)
    python main.py once                 # Ejecutar backup una vez
    python main.py --list               # Listar backups
    python main.py --restore ARCHIVO --yes
    python main.py --help               # Ayuda
"""
import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

from workshop_backup.config import Config
from workshop_backup.exceptions import BackupError
from workshop_backup.logger import LoggerService
from workshop_backup.models import BackupSettings
from workshop_backup.repositories.config_repository import ConfigRepository
from workshop_backup.runners import ProcessRunner
from workshop_backup.services.backup_service import BackupService
from workshop_backup.services.scheduler_service import SchedulerService
from workshop_backup.utils import format_file_size


def parse_arguments(argv=None):
    """
    Parsea argumentos de línea de comandos

    Returns:
        Namespace con los argumentos parseados
    """
    parser = argparse.ArgumentParser(
        description='Servicio de backups de la base de datos del taller',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Ejemplos:
  python main.py                        # Iniciar servicio automático
  python main.py once                   # Ejecutar backup una sola vez
  python main.py --list                 # Listar backups existentes
  python main.py --stats                # Ver estadísticas de backups
  python main.py --restore F.sql --yes  # Restaurar (destructivo)
  python main.py --init                 # Crear .env.example
        """
    )

    parser.add_argument(
        'mode',
        nargs='?',
        choices=['once', 'scheduler'],
        default='scheduler',
        help='Modo de ejecución (default: scheduler)'
    )
    parser.add_argument('--list', action='store_true', help='Listar backups existentes')
    parser.add_argument('--stats', action='store_true', help='Mostrar estadísticas de backups')
    parser.add_argument('--restore', type=str, metavar='ARCHIVO', help='Restaurar la base desde un backup')
    parser.add_argument('--delete', type=str, metavar='ARCHIVO', help='Eliminar un backup')
    parser.add_argument('--yes', action='store_true', help='Confirmar operaciones destructivas')
    parser.add_argument('--init', action='store_true', help='Crear archivo .env.example')
    parser.add_argument(
        '--now',
        action='store_true',
        help='Ejecutar backup inmediatamente al iniciar scheduler'
    )

    return parser.parse_args(argv)


def initialize_config(target_dir: Optional[Path] = None) -> bool:
    """
    Crea .env.example si no existe

    Returns:
        True si se creó el archivo
    """
    logger = LoggerService.get_logger("Init")
    env_example = (target_dir or Config.BASE_DIR) / ".env.example"
    if env_example.exists():
        logger.info(f"Ya existe: {env_example}")
        return False

    if not ConfigRepository().create_env_example(env_example):
        return False

    logger.info("=" * 70)
    logger.info("IMPORTANTE:")
    logger.info("1. Copia .env.example como .env")
    logger.info("2. Completa DATABASE_URL con la conexión a PostgreSQL")
    logger.info("3. Ajusta MAX_BACKUPS, BACKUP_SCHEDULE y AUTO_BACKUP_ENABLED")
    logger.info("=" * 70)
    return True


async def startup(
    settings: BackupSettings,
    runner: Optional[ProcessRunner] = None,
    run_immediately: bool = False,
) -> SchedulerService:
    """
    Prepara el directorio de backups y arma el programador

    Args:
        settings: Configuración de backups
        runner: Ejecutor de procesos (por defecto asyncio)
        run_immediately: Ejecutar un backup antes de esperar el primer disparo

    Returns:
        Handle del programador; se entrega a shutdown()
    """
    backup_service = BackupService(settings, runner=runner)
    backup_service.repository.ensure_backup_dir()

    scheduler = SchedulerService(backup_service, settings)

    if run_immediately:
        LoggerService.get_logger("Main").info("Ejecutando backup inicial...")
        await scheduler.tick()

    scheduler.start()
    return scheduler


async def shutdown(scheduler: Optional[SchedulerService]):
    """
    Detiene el programador recibido de startup() y espera a que termine su ciclo

    Args:
        scheduler: Handle devuelto por startup()
    """
    if scheduler is None:
        return

    task = scheduler.task
    scheduler.stop()
    if task is not None:
        await asyncio.gather(task, return_exceptions=True)


async def run_scheduler(settings: BackupSettings, run_immediately: bool = False) -> int:
    """Ejecuta el servicio hasta recibir SIGINT/SIGTERM"""
    logger = LoggerService.get_logger("Main")
    scheduler = await startup(settings, run_immediately=run_immediately)

    if not scheduler.is_armed:
        logger.info("No hay backups programados; finalizando")
        return 0

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _request_stop(signal_name: str):
        logger.info(f"Señal recibida: {signal_name}")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop, sig.name)
        except NotImplementedError:
            # Windows: sin soporte de add_signal_handler
            signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(
                _request_stop, signal.Signals(signum).name))

    logger.info("Presiona Ctrl+C para detener el servicio")
    await stop_event.wait()

    logger.info("Deteniendo servicio de backup...")
    await shutdown(scheduler)
    logger.info("Servicio detenido correctamente")
    return 0


def show_backups(backup_service: BackupService):
    """Muestra los backups existentes, del más reciente al más antiguo"""
    logger = LoggerService.get_logger("List")
    backups = backup_service.list_backups()

    logger.info("=" * 70)
    logger.info(f"BACKUPS EN {backup_service.repository.backup_dir}")
    logger.info("=" * 70)
    for backup in backups:
        logger.info(
            f"  {backup.filename}  {format_file_size(backup.size):>10}  "
            f"{backup.created.strftime('%Y-%m-%d %H:%M:%S')}"
        )
    if not backups:
        logger.info("  (sin backups)")
    logger.info("=" * 70)


def show_statistics(backup_service: BackupService):
    """
    Muestra estadísticas de backups

    Args:
        backup_service: Servicio de backup
    """
    logger = LoggerService.get_logger("Stats")
    stats = backup_service.get_backup_stats()

    logger.info("=" * 70)
    logger.info("ESTADÍSTICAS DE BACKUPS")
    logger.info("=" * 70)
    logger.info(f"Directorio: {backup_service.repository.backup_dir}")
    logger.info(f"Total de archivos: {stats['total_files']}")
    logger.info(f"Espacio utilizado: {format_file_size(stats['total_size_bytes'])}")

    if stats['oldest_backup']:
        logger.info(f"Backup más antiguo: {stats['oldest_backup']}")
    if stats['newest_backup']:
        logger.info(f"Backup más reciente: {stats['newest_backup']}")

    logger.info(f"Retención configurada: {stats['max_backups']} backup(s)")
    logger.info("=" * 70)


def main(argv=None) -> int:
    """Función principal"""
    args = parse_arguments(argv)

    if args.init:
        initialize_config()
        return 0

    logger = LoggerService.get_logger("Main")
    settings = ConfigRepository().get_backup_settings()

    manual = args.list or args.stats or args.delete or args.restore or args.mode == 'once'
    if not manual:
        return asyncio.run(run_scheduler(settings, run_immediately=args.now))

    backup_service = BackupService(settings)
    try:
        if args.list:
            show_backups(backup_service)
            return 0

        if args.stats:
            show_statistics(backup_service)
            return 0

        if args.delete:
            backup_service.delete_backup(args.delete)
            return 0

        if args.restore:
            if not args.yes:
                logger.error("La restauración reemplaza la base de datos actual; confirma con --yes")
                return 2
            asyncio.run(backup_service.restore_backup(args.restore))
            return 0

        logger.info("Modo: Ejecución única")
        backup = asyncio.run(backup_service.create_backup())
        logger.info(f"✓ Backup exitoso: {backup.filepath}")
        return 0
    except BackupError as e:
        logger.error(f"✗ {e}")
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nPrograma interrumpido por el usuario")
        sys.exit(0)
    except Exception as e:
        print(f"Error crítico: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
