"""
Pydantic and dataclass models for auxctl.
"""

from .backend import (
    ExecResult,
    ProcessHandle,
    ServiceStatus,
    StartOutcome,
    StartRequest,
    StartResult,
    StopOutcome,
    StopResult,
)
from .base import ConfigSection, DocumentModel
from .config import AuxctlConfig
from .discovery import CachedVersionResult, CacheKey
from .service import (
    CommandInput,
    ContainerSpec,
    CustomCommand,
    DockerImage,
    EnvironmentVariable,
    ExecutionMode,
    NativeDownload,
    PortMapping,
    ServiceDefaults,
    ServiceDefinition,
    ServiceDocument,
    ServiceParameter,
    VolumeMapping,
)

__all__ = [
    "AuxctlConfig",
    "CacheKey",
    "CachedVersionResult",
    "CommandInput",
    "ConfigSection",
    "ContainerSpec",
    "CustomCommand",
    "DockerImage",
    "DocumentModel",
    "EnvironmentVariable",
    "ExecResult",
    "ExecutionMode",
    "NativeDownload",
    "PortMapping",
    "ProcessHandle",
    "ServiceDefaults",
    "ServiceDefinition",
    "ServiceDocument",
    "ServiceParameter",
    "ServiceStatus",
    "StartOutcome",
    "StartRequest",
    "StartResult",
    "StopOutcome",
    "StopResult",
    "VolumeMapping",
]
