# Copyright (c) US Inc. All rights reserved.
"""In-memory stand-ins for the storage, model and SSH boundaries"""

import json
from typing import Dict, List, Optional

from tuneforge.core.database import Database
from tuneforge.core.exceptions import TransportError
from tuneforge.models.db_models import Document
from tuneforge.services.file_source import FileSource
from tuneforge.services.generation_client import Completion, GenerationClient
from tuneforge.services.remote_executor import RemoteExecutor


def memory_database() -> Database:
    db = Database('sqlite://')
    db.init()
    return db


def csv_bytes(rows: int, header: str = 'question,answer') -> bytes:
    lines = [header] + [f'q{i},a{i}' for i in range(rows)]
    return ('\n'.join(lines) + '\n').encode('utf-8')


def json_bytes(items) -> bytes:
    return json.dumps(items).encode('utf-8')


class MemoryFileSource(FileSource):

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        self.files: Dict[str, bytes] = dict(files or {})

    def read(self, path: str) -> bytes:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def exists(self, path: str) -> bool:
        return path in self.files

    def write(self, path: str, content: bytes) -> None:
        self.files[path] = content

    def remove(self, path: str) -> None:
        self.files.pop(path, None)


class FakeGenerationClient(GenerationClient):
    """Returns queued texts in order, or raises ``error`` on every call."""

    def __init__(self, texts: Optional[List[str]] = None, error: Optional[Exception] = None, model: str = 'fake-model'):
        self.texts = list(texts or [])
        self.error = error
        self.model = model
        self.calls: List[dict] = []

    async def complete(self, prompt, system=None, model=None, temperature=0.7, max_tokens=None) -> Completion:
        self.calls.append({
            'prompt': prompt,
            'system': system,
            'model': model,
            'temperature': temperature,
            'max_tokens': max_tokens,
        })
        if self.error is not None:
            raise self.error
        text = self.texts.pop(0) if self.texts else ''
        return Completion(text=text, model=model or self.model, tokens_used=42)


class FakeExecutor(RemoteExecutor):
    """Scripted remote session. Every instance is appended to ``instances``."""

    instances: List['FakeExecutor'] = []

    def __init__(self, target, exit_code: int = 0, chunks: Optional[List[str]] = None, connect_error: bool = False):
        self.target = target
        self.exit_code = exit_code
        self.chunks = list(chunks or [])
        self.connect_error = connect_error
        self.events: List[tuple] = []
        self.uploads: Dict[str, bytes] = {}
        self.closed = False
        FakeExecutor.instances.append(self)

    @classmethod
    def factory(cls, **kwargs):
        return lambda target: cls(target, **kwargs)

    async def connect(self) -> None:
        self.events.append(('connect', self.target.host))
        if self.connect_error:
            raise TransportError('SSH connection refused')

    async def make_dirs(self, path: str) -> None:
        self.events.append(('mkdir', path))

    async def put_bytes(self, data: bytes, remote_path: str) -> None:
        self.events.append(('put', remote_path))
        self.uploads[remote_path] = data

    async def run(self, command: str, on_output) -> int:
        self.events.append(('run', command))
        for chunk in self.chunks:
            result = on_output(chunk)
            if result is not None:
                await result
        return self.exit_code

    async def close(self) -> None:
        self.events.append(('close',))
        self.closed = True


def make_document(repository, doc_id: str, file_path: str, file_type: str = 'csv', user: str = 'user-1',
                  status: str = 'uploaded') -> Document:
    document = Document(
        id=doc_id,
        filename=file_path.rsplit('/', 1)[-1],
        file_path=file_path,
        file_size=0,
        file_type=file_type,
        status=status,
        uploaded_by=user,
    )
    return repository.save(document)
