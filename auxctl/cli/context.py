"""
Click context extension for auxctl CLI.

Provides AuxctlContext dataclass that holds auxctl-specific data
passed through the Click command chain via ctx.obj.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from ..core.interfaces.presenter import IPresenter
    from ..core.settings import AuxctlSettings
    from ..services.orchestration import ServiceOrchestrator
    from ..services.registry import ServiceRegistry


@dataclass
class AuxctlContext:
    """Extended context passed through Click command chain.

    Created once per invocation. The registry and orchestrator are built on
    first use so commands that never touch the service document (`config`)
    do not load it.

    Attributes:
        cwd: Current working directory
        document_path: Service document in effect
        settings: Loaded application settings
        is_interactive: Whether stdin is a TTY (for prompts)
    """

    cwd: Path
    document_path: Path
    settings: AuxctlSettings
    is_interactive: bool
    _registry: ServiceRegistry | None = field(default=None, repr=False)
    _orchestrator: ServiceOrchestrator | None = field(default=None, repr=False)

    @classmethod
    def create(cls, cwd: Path | None = None, document: str | None = None) -> AuxctlContext:
        """Create an AuxctlContext for the current environment.

        Args:
            cwd: Working directory override (defaults to Path.cwd())
            document: Service document override (defaults to settings)
        """
        from ..core.bootstrap import bootstrap
        from ..core.settings import load_settings

        if cwd is None:
            cwd = Path.cwd()
        settings = load_settings(start_dir=str(cwd))
        bootstrap(settings)
        if settings.config_error:
            click.echo(f"Warning: {settings.config_error}; using defaults", err=True)
        document_path = Path(document).expanduser() if document else settings.document_path(cwd)

        return cls(
            cwd=cwd,
            document_path=document_path,
            settings=settings,
            is_interactive=sys.stdin.isatty(),
        )

    @property
    def presenter(self) -> IPresenter:
        from ..core.di import resolve_or_default
        from ..core.interfaces.presenter import IPresenter
        from ..presenters.console import ConsolePresenter

        return resolve_or_default(IPresenter, ConsolePresenter)  # type: ignore[type-abstract]

    @property
    def registry(self) -> ServiceRegistry:
        if self._registry is None:
            from ..services.registry import ServiceRegistry

            self._registry = ServiceRegistry(self.document_path)
            self._registry.load()
        return self._registry

    @property
    def orchestrator(self) -> ServiceOrchestrator:
        if self._orchestrator is None:
            from ..services.discovery import VersionDiscoveryService
            from ..services.installation import NativeInstaller
            from ..services.orchestration import ServiceOrchestrator

            discovery = VersionDiscoveryService(
                self.settings.discovery,
                credential_callback=self._ask_for_token if self.is_interactive else None,
                save_token=self._save_token,
            )
            self._orchestrator = ServiceOrchestrator(
                self.registry,
                discovery=discovery,
                installer=NativeInstaller(self.settings.process),
            )
        return self._orchestrator

    async def _ask_for_token(self) -> str | None:
        click.echo("The package registry requires a GitHub token (scope: read:packages).")
        token = click.prompt("GitHub token (empty to skip)", default="", hide_input=True, show_default=False)
        return token.strip() or None

    def _save_token(self, token: str) -> None:
        from ..config import config_set

        path, _ = config_set("discovery.github_token", token, user=True)
        click.echo(f"Token saved to {path}")
