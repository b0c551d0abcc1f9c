"""
Output presenters for the auxctl CLI.
"""

from .console import ConsolePresenter

__all__ = ["ConsolePresenter"]
