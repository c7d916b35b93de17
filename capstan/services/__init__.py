"""
Service layer for capstan.

Contains the logic that orchestrates domain objects and infrastructure:
- Repository: import, remove, list and locate stored disk images

Services are the primary API for commands to use.
"""

from .repository import Repository

__all__ = [
    'Repository',
]
