"""
Version discovery for services.

Finds container image tags and native release assets on GitHub.
"""

from .cache import VersionCache
from .filtering import BoundedPattern, matches_within
from .platform import current_platform, detect_platform
from .service import PackageRef, VersionDiscoveryService, parse_package_url, parse_repository_url

__all__ = [
    "BoundedPattern",
    "PackageRef",
    "VersionCache",
    "VersionDiscoveryService",
    "current_platform",
    "detect_platform",
    "matches_within",
    "parse_package_url",
    "parse_repository_url",
]
