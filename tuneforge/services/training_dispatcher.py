# Copyright (c) US Inc. All rights reserved.
"""Dispatch of validated datasets to the remote training host"""

import logging
import os
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import CommandError, ConfigurationError
from ..models.db_models import Document
from ..models.schemas import DispatchResult
from .file_source import FileSource, LocalFileSource
from .remote_executor import AsyncSSHExecutor, RemoteExecutor, RemoteTarget

logger = logging.getLogger(__name__)

ProgressSink = Callable[[str], Union[None, Awaitable[None]]]
ExecutorFactory = Callable[[RemoteTarget], RemoteExecutor]


def _log_sink(line: str) -> None:
    logger.info("[GPU] %s", line.rstrip())


class TrainingDispatcher:
    """Stages a batch's combined dataset on the remote host and runs the training command."""

    def __init__(
        self,
        target: RemoteTarget,
        staging_dir: str = "/tmp/datasets",
        dataset_path: str = "/tmp/combined_dataset.csv",
        train_command: str = "cd /tmp && python3 /workspace/train_model.py combined_dataset.csv",
        artifact_path: str = "/workspace/finetuned-model",
        file_source: Optional[FileSource] = None,
        executor_factory: ExecutorFactory = AsyncSSHExecutor,
    ):
        self.target = target
        self.staging_dir = staging_dir
        self.dataset_path = dataset_path
        self.train_command = train_command
        self.artifact_path = artifact_path
        self.file_source = file_source or LocalFileSource()
        self.executor_factory = executor_factory

    @classmethod
    def from_settings(
        cls,
        settings: Settings = default_settings,
        file_source: Optional[FileSource] = None,
        executor_factory: ExecutorFactory = AsyncSSHExecutor,
    ) -> "TrainingDispatcher":
        return cls(
            target=RemoteTarget.from_settings(settings),
            staging_dir=settings.REMOTE_STAGING_DIR,
            dataset_path=settings.REMOTE_DATASET_PATH,
            train_command=settings.REMOTE_TRAIN_COMMAND,
            artifact_path=settings.REMOTE_ARTIFACT_PATH,
            file_source=file_source,
            executor_factory=executor_factory,
        )

    def check_configuration(self) -> None:
        if not self.target.host:
            raise ConfigurationError(
                "Remote training config missing: no host configured",
                user_message="Training host is not configured.",
            )
        key_path = self.target.key_path
        if not key_path or not os.path.isfile(key_path) or not os.access(key_path, os.R_OK):
            raise ConfigurationError(
                f"Remote training config missing: private key {key_path} is not readable",
                user_message="Training host credential is not configured.",
            )

    def combine(self, documents: Sequence[Document]) -> bytes:
        """Each document's bytes followed by a newline, in batch order."""
        parts: List[bytes] = []
        for doc in documents:
            try:
                parts.append(self.file_source.read(doc.file_path))
            except OSError as e:
                logger.error("Failed to read %s for dispatch: %s", doc.filename, e)
                continue
            parts.append(b"\n")
        return b"".join(parts)

    async def dispatch(self, documents: Sequence[Document], sink: Optional[ProgressSink] = None) -> DispatchResult:
        """Run one remote training for ``documents``.

        Raises ConfigurationError before connecting, TransportError for
        connection-level failures and CommandError for a non-zero exit.
        """
        self.check_configuration()
        sink = sink or _log_sink
        output: List[str] = []

        async def forward(chunk: str) -> None:
            output.append(chunk)
            result = sink(chunk)
            if result is not None:
                await result

        payload = self.combine(documents)

        async with self.executor_factory(self.target) as executor:
            logger.info("SSH: training host %s connected", self.target.host)
            await executor.make_dirs(self.staging_dir)
            await executor.put_bytes(payload, self.dataset_path)
            logger.info("Staged %d bytes from %d document(s) at %s", len(payload), len(documents), self.dataset_path)
            exit_code = await executor.run(self.train_command, forward)

        captured = "".join(output)
        if exit_code != 0:
            logger.error("Remote training exited with code %s", exit_code)
            raise CommandError(exit_code, output=captured)

        return DispatchResult(success=True, output=captured, artifact_path=self.artifact_path, exit_code=0)
