"""
Template resolution for custom service commands.
"""

from .engine import INPUT_PATTERN, MACRO_PATTERN, PLACEHOLDER_PATTERN, CommandTemplateEngine
from .macros import Macro, default_macros

__all__ = ["INPUT_PATTERN", "MACRO_PATTERN", "PLACEHOLDER_PATTERN", "CommandTemplateEngine", "Macro", "default_macros"]
