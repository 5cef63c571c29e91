"""
Servicios de la aplicación
"""
from .backup_service import BackupService
from .cleanup_service import CleanupService
from .scheduler_service import SchedulerService, SchedulerState

__all__ = [
    'BackupService',
    'CleanupService',
    'SchedulerService',
    'SchedulerState'
]
