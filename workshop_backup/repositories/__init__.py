"""
Repositorios de configuración y de archivos de backup
"""
from .backup_repository import BackupRepository
from .config_repository import ConfigRepository

__all__ = ['BackupRepository', 'ConfigRepository']
