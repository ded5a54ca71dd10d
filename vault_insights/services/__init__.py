"""Service modules"""
from .timeline_service import TimelineService
from .vault_service import VaultAprService

__all__ = ["TimelineService", "VaultAprService"]
