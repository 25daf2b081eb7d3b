"""Interfaces/abstractions of the Core.

Why:
- Defines contracts (Protocol) that concrete adapters implement.
- Inverts dependencies: the Core depends on abstractions.
"""

from core.interfaces.actions_api import ActionsAPI

__all__ = ["ActionsAPI"]
