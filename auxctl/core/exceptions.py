"""
Exception hierarchy for auxctl.

Every failure is scoped to the single operation that raised it; callers
catch these at the command boundary and report them without terminating
other work.

Keyword details passed to any of these exceptions are collected into
``context`` and shown after the message::

    >>> str(DiscoveryError("Registry query failed", status_code=500))
    'Registry query failed (status_code=500)'
"""

from __future__ import annotations

from typing import Any


class AuxctlException(Exception):
    """
    Base exception for all auxctl errors.

    Attributes:
        message: Human-readable error description
        context: Details about the failing operation (service id, path, URL)
        exit_code: Exit status the CLI uses when reporting the error
        recoverable: Whether retrying the operation can succeed
    """

    exit_code: int = 1
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        *,
        context: dict | None = None,
        cause: Exception | None = None,
        **details: Any,
    ) -> None:
        self.message = message
        self.context = dict(context or {})
        self.context.update((k, v) for k, v in details.items() if v is not None)
        if cause is not None:
            self.__cause__ = cause
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.message} ({details})"


# Service document and application config


class ConfigurationError(AuxctlException):
    """Base class for configuration and service document errors."""


class DocumentLoadError(ConfigurationError):
    """
    The service document is missing, unreadable, or not valid YAML.

    The registry records it as ``load_error`` and carries on with no
    services. Context: ``file_path``.
    """


class ConfigValidationError(ConfigurationError, ValueError):
    """Unknown config key or a value of the wrong type. Context: ``key``, ``value``."""


class ServiceNotFoundError(ConfigurationError, KeyError):
    """No service with the requested id exists in the document."""

    recoverable = False

    def __init__(self, service_id: str, **kwargs: Any) -> None:
        self.service_id = service_id
        super().__init__(f"Unknown service: {service_id}", service_id=service_id, **kwargs)

    # KeyError would repr() the message.
    __str__ = AuxctlException.__str__


# Execution backends


class BackendError(AuxctlException):
    """Base class for execution backend errors."""


class BackendUnavailableError(BackendError):
    """
    The backend for a service's execution mode cannot be used, typically
    because the container CLI is missing or the daemon is down.

    Raised before anything is started. Context: ``backend``.
    """

    recoverable = False


class StartFailureError(BackendError):
    """The instance was launched but was not running once the settle window passed."""


class BinaryMissingError(BackendError):
    """The native executable of a process-mode service is not installed."""

    recoverable = False


class StopTimeoutError(BackendError):
    """A native process survived both the graceful and the forced stop. Context: ``pid``."""


class InvalidNameError(BackendError, ValueError):
    """An instance name was rejected before reaching the container CLI."""

    recoverable = False

    def __init__(self, name: str, **kwargs: Any) -> None:
        super().__init__("Invalid instance name", name=name, **kwargs)


# Remote registries and downloads


class DiscoveryError(AuxctlException):
    """
    A release or package registry query failed.

    Discovery logs these and falls back to a reduced candidate list, so they
    only escape from the URL parsing helpers. Context: ``url``,
    ``status_code``.
    """

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs: Any) -> None:
        self.status_code = status_code
        super().__init__(message, status_code=status_code, **kwargs)


class InstallationError(AuxctlException):
    """Downloading or unpacking a native release failed. Context: ``url``, ``dest_path``."""


# User input


class AuxctlValidationError(AuxctlException, ValueError):
    """Base class for rejected user input."""


class TemplateResolutionError(AuxctlValidationError):
    """
    A custom command template could not be fully resolved.

    Raised for a missing input, an unknown macro, or a macro whose backing
    capability (such as the wallet) is unavailable. Nothing runs when this is
    raised.
    """


class ParameterValidationError(AuxctlValidationError):
    """A parameter value violates its type, bounds, or allowed values."""


class InvalidArgumentError(AuxctlValidationError):
    """A command argument failed validation. Context: ``argument``, ``value``."""
