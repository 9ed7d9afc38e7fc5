"""Profile documents kept as markdown files in one directory."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from counsel.errors import PersistenceError
from counsel.stores.base import ProfileDocument, ProfileStore

_logger = logging.getLogger(__name__)


def _validate_filename(filename: str) -> str:
    name = filename.strip()
    if not name or name in (".", ".."):
        raise PersistenceError("Filename must not be empty")
    if "/" in name or "\\" in name or Path(name).name != name:
        raise PersistenceError(f"Invalid filename (no directories allowed): {filename}")
    return name


class MarkdownProfileStore(ProfileStore):
    """Every ``*.md`` file in *directory* is one profile document."""

    def __init__(self, directory: str | Path) -> None:
        super().__init__()
        self.directory = Path(directory).expanduser()

    def _ensure_dir(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(str(e)) from e

    def list(self) -> dict[str, str]:
        self._ensure_dir()
        files: dict[str, str] = {}
        try:
            for path in sorted(self.directory.glob("*.md")):
                if path.is_file():
                    files[path.name] = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise PersistenceError(str(e)) from e
        return files

    def list_detailed(self) -> list[ProfileDocument]:
        self._ensure_dir()
        docs: list[ProfileDocument] = []
        try:
            for path in sorted(self.directory.glob("*.md")):
                if not path.is_file():
                    continue
                stat = path.stat()
                modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
                docs.append(ProfileDocument(
                    filename=path.name,
                    content=path.read_text(encoding="utf-8", errors="replace"),
                    modified_at=modified.strftime("%Y-%m-%dT%H:%M:%SZ"),
                    size_bytes=stat.st_size,
                ))
        except OSError as e:
            raise PersistenceError(str(e)) from e
        return docs

    def write(self, filename: str, content: str) -> str:
        name = _validate_filename(filename)
        self._ensure_dir()
        try:
            (self.directory / name).write_text(content, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(str(e)) from e
        _logger.info("Wrote profile file %s (%d chars)", name, len(content))
        return f"Successfully wrote {name}"

    def delete(self, filename: str) -> str:
        name = _validate_filename(filename)
        path = self.directory / name
        if not path.exists():
            return f"File {name} does not exist"
        try:
            path.unlink()
        except OSError as e:
            raise PersistenceError(str(e)) from e
        _logger.info("Deleted profile file %s", name)
        return f"Successfully deleted {name}"
