"""SFTP client for the remote image store.

Provides:
- One SSH/SFTP connection per unit of work, always closed on exit
- Binary uploads into the configured remote directory
- Best-effort removal of previously uploaded files
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncssh

from app.config import settings
from app.infra.logging import get_logger

logger = get_logger(__name__)


class RemoteTransferError(Exception):
    """Raised when the remote store rejects or fails a transfer."""


class TransferSession:
    """An open SFTP channel bound to a remote base directory."""

    def __init__(self, sftp: asyncssh.SFTPClient, base_path: str) -> None:
        self._sftp = sftp
        self._base_path = base_path.rstrip("/")
        self.uploaded: list[str] = []

    def remote_path(self, file_name: str) -> str:
        """Full remote path for ``file_name``."""
        return f"{self._base_path}/{file_name}"

    async def put(self, data: bytes, file_name: str) -> str:
        """Write ``data`` to ``{base_path}/{file_name}``.

        Returns:
            The remote path written

        Raises:
            RemoteTransferError: If the write fails
        """
        path = self.remote_path(file_name)
        try:
            async with self._sftp.open(path, "wb") as remote_file:
                await remote_file.write(data)
        except (asyncssh.Error, OSError) as e:
            raise RemoteTransferError(f"Upload of '{path}' failed: {e}") from e

        self.uploaded.append(file_name)
        logger.info("Uploaded file", remote_path=path, size=len(data))
        return path

    async def remove(self, file_name: str) -> None:
        """Delete ``{base_path}/{file_name}``."""
        path = self.remote_path(file_name)
        try:
            await self._sftp.remove(path)
        except (asyncssh.Error, OSError) as e:
            raise RemoteTransferError(f"Removal of '{path}' failed: {e}") from e
        logger.info("Removed file", remote_path=path)


class SftpFileTransfer:
    """Factory for short-lived SFTP sessions against one remote host.

    Holds connection parameters only; every call to :meth:`session` opens
    its own connection, so concurrent requests never share a channel.
    """

    def __init__(
        self,
        host: str | None = None,
        username: str | None = None,
        password: str | None = None,
        base_path: str | None = None,
        port: int | None = None,
        known_hosts: str | None = None,
    ) -> None:
        self.host = host or settings.remote_host
        self.username = username or settings.remote_user
        self.password = password or settings.remote_password
        self.base_path = base_path or settings.remote_path
        self.port = port or settings.remote_port
        self.known_hosts = known_hosts if known_hosts is not None else settings.remote_known_hosts

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[TransferSession, None]:
        """Open an SFTP session, closing the connection on every exit path.

        Raises:
            RemoteTransferError: If the connection cannot be established
        """
        try:
            conn = await asyncssh.connect(
                self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                known_hosts=self.known_hosts or None,
            )
        except (asyncssh.Error, OSError) as e:
            raise RemoteTransferError(
                f"Connection to {self.host}:{self.port} failed: {e}"
            ) from e

        logger.debug("SFTP connection opened", host=self.host, port=self.port)
        try:
            async with conn.start_sftp_client() as sftp:
                yield TransferSession(sftp, self.base_path)
        finally:
            conn.close()
            await conn.wait_closed()
            logger.debug("SFTP connection closed", host=self.host)


# Singleton instance
_file_transfer: SftpFileTransfer | None = None


def get_file_transfer() -> SftpFileTransfer:
    """Get the configured file transfer factory."""
    global _file_transfer
    if _file_transfer is None:
        _file_transfer = SftpFileTransfer()
    return _file_transfer
