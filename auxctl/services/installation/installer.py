"""
Native release installation.

Downloads a release archive and unpacks it into the service directory
(``<services_root>/<service_id>``), where the process backend looks for the
service binary.
"""

from __future__ import annotations

import shutil
import sys
import tarfile
import tempfile
import zipfile
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

import httpx

from ...core.exceptions import InstallationError
from ...core.interfaces.logger import ILogger
from ...core.models.config import ProcessConfig
from ...core.models.service import NativeDownload

CHUNK_SIZE = 64 * 1024
DOWNLOAD_TIMEOUT = 30 * 60.0

ProgressCallback = Callable[[int, int | None], None]


def archive_kind(filename: str) -> str | None:
    """Return "tar" or "zip" for a supported archive name, else None."""
    lower = filename.lower()
    if lower.endswith((".tar.gz", ".tgz")):
        return "tar"
    if lower.endswith(".zip"):
        return "zip"
    return None


def _check_member(dest: Path, member_name: str) -> Path:
    target = (dest / member_name).resolve()
    if target != dest and dest not in target.parents:
        raise InstallationError(
            f"Archive member escapes the target directory: {member_name}",
            dest_path=str(dest),
        )
    return target


def extract_archive(archive: Path, dest: Path) -> int:
    """
    Unpack an archive into dest.

    Returns:
        Number of members extracted

    Raises:
        InstallationError: Unsupported format, corrupt archive, or a member
            that would land outside dest
    """
    kind = archive_kind(archive.name)
    dest = dest.resolve()
    dest.mkdir(parents=True, exist_ok=True)

    try:
        if kind == "tar":
            with tarfile.open(archive, "r:gz") as tar:
                members = [m for m in tar.getmembers() if m.isfile() or m.isdir()]
                for member in members:
                    _check_member(dest, member.name)
                tar.extractall(dest, members=members)
                return len(members)
        if kind == "zip":
            with zipfile.ZipFile(archive) as zf:
                names = zf.namelist()
                for name in names:
                    _check_member(dest, name)
                zf.extractall(dest)
                return len(names)
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
        raise InstallationError(f"Failed to extract {archive.name}: {e}", dest_path=str(dest), cause=e) from e

    raise InstallationError(f"Unsupported archive format: {archive.name}", dest_path=str(dest))


def keep_whitelisted(directory: Path, whitelist: list[str]) -> list[str]:
    """
    Reduce directory to the whitelisted file names, flattened to its root.

    Files are matched by base name anywhere in the tree (case-insensitive on
    Windows). If nothing matches the directory is left untouched.

    Returns:
        Names of the files kept
    """
    fold = sys.platform == "win32"
    wanted = {w.lower() if fold else w for w in whitelist}

    found: dict[str, Path] = {}
    for path in sorted(directory.rglob("*")):
        if not path.is_file():
            continue
        key = path.name.lower() if fold else path.name
        if key in wanted:
            found.setdefault(path.name, path)

    if not found:
        return []

    with tempfile.TemporaryDirectory(prefix="auxctl-whitelist-") as tmp:
        staging = Path(tmp)
        for name, path in found.items():
            shutil.copy2(path, staging / name)
        shutil.rmtree(directory)
        shutil.copytree(staging, directory)
    return sorted(found)


class NativeInstaller:
    """Installs native release archives into service directories."""

    def __init__(
        self,
        config: ProcessConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: ILogger | None = None,
    ) -> None:
        if config is None:
            from ...core.settings import get_settings

            config = get_settings().process
        self.config = config
        self._transport = transport
        self._logger = logger

    @property
    def logger(self) -> ILogger:
        """Get logger, resolving from container or creating NullLogger."""
        if self._logger is None:
            from ...core.di import resolve_or_default
            from ..logging import NullLogger

            self._logger = resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        return self._logger

    def service_dir(self, service_id: str) -> Path:
        return Path(self.config.services_root).expanduser() / service_id

    async def download(
        self,
        url: str,
        dest: Path,
        progress: ProgressCallback | None = None,
    ) -> Path:
        """
        Stream url into dest.

        Args:
            url: Download URL
            dest: File to write
            progress: Called with (bytes_read, total_bytes or None) per chunk

        Raises:
            InstallationError: On HTTP or I/O failure
        """
        self.logger.debug("Downloading %s -> %s", url, dest)
        try:
            async with httpx.AsyncClient(
                timeout=DOWNLOAD_TIMEOUT, transport=self._transport, follow_redirects=True
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    length = response.headers.get("content-length")
                    total = int(length) if length and length.isdigit() else None
                    read = 0
                    with open(dest, "wb") as f:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            f.write(chunk)
                            read += len(chunk)
                            if progress is not None:
                                progress(read, total)
        except httpx.HTTPError as e:
            raise InstallationError(f"Download failed: {e}", url=url, dest_path=str(dest), cause=e) from e
        except OSError as e:
            raise InstallationError(f"Cannot write download: {e}", url=url, dest_path=str(dest), cause=e) from e
        return dest

    async def install(
        self,
        service_id: str,
        download: NativeDownload,
        progress: ProgressCallback | None = None,
    ) -> Path:
        """
        Download and unpack a release into the service directory.

        The archive is unpacked into a staging directory first; the whitelist
        (if any) is applied there, and the result is copied over the service
        directory so existing logs and data files survive.

        Returns:
            The service directory

        Raises:
            InstallationError: If any step fails
        """
        filename = PurePosixPath(unquote(urlparse(download.url).path)).name
        if not filename or archive_kind(filename) is None:
            raise InstallationError(f"Unsupported archive format: {filename or download.url}", url=download.url)

        target = self.service_dir(service_id)
        self.logger.info("Installing %s %s (%s)", service_id, download.version, download.platform)

        with tempfile.TemporaryDirectory(prefix="auxctl-install-") as tmp:
            archive = await self.download(download.url, Path(tmp) / filename, progress)
            staging = Path(tmp) / "extracted"
            count = extract_archive(archive, staging)
            self.logger.debug("Extracted %d members from %s", count, filename)

            if download.whitelist:
                kept = keep_whitelisted(staging, download.whitelist)
                if kept:
                    self.logger.debug("Whitelist kept %s", ", ".join(kept))
                else:
                    self.logger.warning("No whitelisted files found in %s", filename)

            try:
                target.mkdir(parents=True, exist_ok=True)
                shutil.copytree(staging, target, dirs_exist_ok=True)
            except OSError as e:
                raise InstallationError(
                    f"Cannot populate service directory: {e}", dest_path=str(target), cause=e
                ) from e

        self.logger.info("Installed %s %s into %s", service_id, download.version, target)
        return target
