"""
Native release installation into service directories.
"""

from .installer import NativeInstaller, archive_kind, extract_archive, keep_whitelisted

__all__ = ["NativeInstaller", "archive_kind", "extract_archive", "keep_whitelisted"]
