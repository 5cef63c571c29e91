"""
Servicio de backups de la base de datos del taller
"""
__version__ = "1.0.0"

from .config import Config
from .logger import LoggerService

__all__ = ['Config', 'LoggerService']
