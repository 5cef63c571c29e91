"""
Servicio de logging siguiendo principio Single Responsibility
"""
import logging
import sys
from datetime import datetime
from .config import Config


class LoggerService:
    """
    Servicio centralizado de logging

    Todos los loggers cuelgan de 'workshop_backup'; los handlers se instalan
    una sola vez en ese logger padre y los hijos propagan hacia él.
    """

    ROOT_NAME = "workshop_backup"

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Obtiene el logger de un componente

        Args:
            name: Nombre del componente (ej: 'BackupService')

        Returns:
            Logger 'workshop_backup.<name>'
        """
        cls._setup_root()
        return logging.getLogger(f"{cls.ROOT_NAME}.{name}")

    @classmethod
    def log_file(cls) -> str:
        """Archivo de log del día: LOG_DIR/backup_YYYYMMDD.log"""
        return str(Config.LOG_DIR / f"backup_{datetime.now().strftime('%Y%m%d')}.log")

    @classmethod
    def _setup_root(cls) -> logging.Logger:
        root = logging.getLogger(cls.ROOT_NAME)
        if root.handlers:
            return root

        Config.ensure_directories()
        root.setLevel(Config.LOG_LEVEL)

        formatter = logging.Formatter(Config.LOG_FORMAT)
        for handler in (
            logging.FileHandler(cls.log_file(), encoding='utf-8'),
            logging.StreamHandler(sys.stdout),
        ):
            handler.setLevel(Config.LOG_LEVEL)
            handler.setFormatter(formatter)
            root.addHandler(handler)

        return root
