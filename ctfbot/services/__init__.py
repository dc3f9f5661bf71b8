"""
Services package for the CTF Arena client.

Platform reads/writes plus the list engine shared by every panel.
"""

from .base import BaseService
from .stale_guard import StaleGuard
from .list_query import ListQueryPipeline
from .optimistic import FlashMessage, OptimisticMutator

__all__ = ['BaseService', 'StaleGuard', 'ListQueryPipeline', 'FlashMessage', 'OptimisticMutator']
