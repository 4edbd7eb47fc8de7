"""
SDK for pirs.

Provides the event-driven tracker that records command executions.
"""

from .tracker import CommandCompleted, CommandStarted, CommandTracker

__all__ = ["CommandTracker", "CommandStarted", "CommandCompleted"]
