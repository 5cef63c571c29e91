"""
Factories del sistema
"""
from .strategy_factory import BackupStrategyFactory

__all__ = ['BackupStrategyFactory']
