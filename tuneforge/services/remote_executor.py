# Copyright (c) US Inc. All rights reserved.
"""Remote command execution over SSH"""

import logging
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

import asyncssh

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import CommandError, TransportError

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], Union[None, Awaitable[None]]]

READ_CHUNK_SIZE = 4096


@dataclass
class RemoteTarget:
    """Where and as whom to connect."""
    host: Optional[str]
    port: int = 22
    username: str = "root"
    key_path: Optional[Path] = None
    known_hosts: Optional[str] = None
    connect_timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "RemoteTarget":
        return cls(
            host=settings.REMOTE_HOST,
            port=settings.REMOTE_PORT,
            username=settings.REMOTE_USER,
            key_path=settings.REMOTE_KEY_PATH,
            known_hosts=settings.REMOTE_KNOWN_HOSTS,
            connect_timeout=settings.REMOTE_CONNECT_TIMEOUT_SECONDS,
        )


class RemoteExecutor(ABC):
    """One authenticated remote session.

    Use as an async context manager so the session is closed on every path.
    """

    @abstractmethod
    async def connect(self) -> None:
        ...

    @abstractmethod
    async def make_dirs(self, path: str) -> None:
        ...

    @abstractmethod
    async def put_bytes(self, data: bytes, remote_path: str) -> None:
        ...

    @abstractmethod
    async def run(self, command: str, on_output: OutputCallback) -> int:
        """Run ``command``, feed each output chunk to ``on_output``, return the exit code."""

    @abstractmethod
    async def close(self) -> None:
        ...

    async def __aenter__(self) -> "RemoteExecutor":
        try:
            await self.connect()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class AsyncSSHExecutor(RemoteExecutor):

    def __init__(self, target: RemoteTarget):
        self.target = target
        self._conn: Optional[asyncssh.SSHClientConnection] = None

    async def connect(self) -> None:
        try:
            self._conn = await asyncssh.connect(
                self.target.host,
                port=self.target.port,
                username=self.target.username,
                client_keys=[str(self.target.key_path)],
                known_hosts=self.target.known_hosts,
                connect_timeout=self.target.connect_timeout,
            )
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"SSH connection to {self.target.host}:{self.target.port} failed: {e}") from e
        logger.info("SSH: connected to %s:%s", self.target.host, self.target.port)

    def _require_conn(self) -> asyncssh.SSHClientConnection:
        if self._conn is None:
            raise TransportError("SSH session is not connected")
        return self._conn

    async def make_dirs(self, path: str) -> None:
        conn = self._require_conn()
        try:
            result = await conn.run(f"mkdir -p {shlex.quote(path)}", check=False)
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"Failed to create remote directory {path}: {e}") from e
        if result.exit_status != 0:
            raise CommandError(
                result.exit_status if result.exit_status is not None else -1,
                output=str(result.stderr or ""),
                message=f"Failed to create remote directory {path}",
            )

    async def put_bytes(self, data: bytes, remote_path: str) -> None:
        conn = self._require_conn()
        try:
            async with conn.start_sftp_client() as sftp:
                async with sftp.open(remote_path, "wb") as f:
                    await f.write(data)
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"Failed to upload dataset to {remote_path}: {e}") from e

    async def run(self, command: str, on_output: OutputCallback) -> int:
        conn = self._require_conn()
        try:
            process = await conn.create_process(command, stderr=asyncssh.STDOUT)
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"Failed to start remote command: {e}") from e

        try:
            while True:
                chunk = await process.stdout.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                maybe_awaitable = on_output(chunk)
                if maybe_awaitable is not None:
                    await maybe_awaitable
            completed = await process.wait()
        except (asyncssh.Error, OSError) as e:
            raise TransportError(f"Connection lost while running remote command: {e}") from e
        finally:
            process.close()

        # terminated by a signal
        if completed.exit_status is None:
            return -1
        return completed.exit_status

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        conn.close()
        try:
            await conn.wait_closed()
        except (asyncssh.Error, OSError) as e:
            logger.debug("SSH: error while closing session: %s", e)
