"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

from pathlib import Path

from conversion_fixer.domain.entities import Document
from conversion_fixer.domain.protocols import FileSystemProtocol


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def read_document(self, path: str) -> Document:
        """Read a source file into an immutable Document."""
        return Document(path=path, source=Path(path).read_text(encoding="utf-8"))

    def write_document(self, document: Document) -> None:
        """Write a document's source back to its path."""
        Path(document.path).write_text(document.source, encoding="utf-8")
