# Copyright (c) US Inc. All rights reserved.
"""Access to stored dataset bytes"""

import os
from abc import ABC, abstractmethod


class FileSource(ABC):

    @abstractmethod
    def read(self, path: str) -> bytes:
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def write(self, path: str, content: bytes) -> None:
        ...

    @abstractmethod
    def remove(self, path: str) -> None:
        ...


class LocalFileSource(FileSource):
    """Files on the local disk."""

    def read(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def write(self, path: str, content: bytes) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)

    def remove(self, path: str) -> None:
        if os.path.exists(path):
            os.remove(path)
