"""A read-only file system backed by a zip archive."""

from __future__ import annotations

import io
import os
import zipfile
from collections.abc import Iterator
from pathlib import Path, PurePosixPath
from typing import IO, BinaryIO, Optional

from layeredfs.errors import FilesystemError
from layeredfs.vfs import VFS, Metadata, OpenOptions, PathArg

_ARCHIVE_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, RuntimeError, NotImplementedError, OSError, EOFError)


def _path_str(path: PathArg) -> str:
    text = os.fspath(path)
    if not isinstance(text, str):
        raise FilesystemError(f"Invalid path format for resource: {text!r}")
    return text


class ZipFileWrapper(io.BufferedIOBase):
    """The whole contents of one archive member, readable and seekable in memory."""

    def __init__(self, data: bytes) -> None:
        super().__init__()
        self._buffer = io.BytesIO(data)

    def __repr__(self) -> str:
        return "<Zipfile>"

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def read(self, size: Optional[int] = -1) -> bytes:
        return self._buffer.read(size)

    def read1(self, size: int = -1) -> bytes:
        return self._buffer.read1(size)

    def readinto(self, buffer) -> int:  # type: ignore[override]
        return self._buffer.readinto(buffer)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._buffer.seek(offset, whence)

    def tell(self) -> int:
        return self._buffer.tell()

    def write(self, data) -> int:  # type: ignore[override]
        """Always fails: archive members cannot be written."""
        raise FilesystemError("Cannot write to a zip file!")

    def close(self) -> None:
        self._buffer.close()
        super().close()


class ZipFS(VFS):
    """A read-only file system whose files are the members of a zip archive.

    Zip archives have no real directories, so directory listing is done by
    matching name prefixes.
    """

    def __init__(self, filename: PathArg) -> None:
        source = Path(filename)
        try:
            data = source.read_bytes()
        except OSError as exc:
            raise FilesystemError(str(exc)) from exc
        self._load(io.BytesIO(data), source)

    @classmethod
    def from_read(cls, reader: BinaryIO) -> "ZipFS":
        """Build a file system from any readable, seekable binary stream."""
        instance = cls.__new__(cls)
        instance._load(reader, None)
        return instance

    def _load(self, reader: BinaryIO, source: Optional[Path]) -> None:
        try:
            archive = zipfile.ZipFile(reader)
        except _ARCHIVE_ERRORS as exc:
            raise FilesystemError(f"Invalid zip archive: {exc}") from exc
        self._source = source
        self._archive = archive
        self._index = archive.namelist()

    def __repr__(self) -> str:
        return f"<ZipFS source: {self._source}>"

    def _refuse(self, action: str, path: PathArg) -> FilesystemError:
        return FilesystemError(
            f"Cannot {action} {os.fspath(path)!r} in zipfile {self!r}, filesystem read-only"
        )

    def open_options(self, path: PathArg, options: OpenOptions) -> IO[bytes]:
        name = _path_str(path)
        if options.alters():
            raise FilesystemError(
                f"Cannot alter file {name!r} in zipfile {self!r}, filesystem read-only"
            )
        try:
            data = self._archive.read(name)
        except KeyError as exc:
            raise FilesystemError(f"File not found in zip archive: {name}") from exc
        except _ARCHIVE_ERRORS as exc:
            raise FilesystemError(f"Could not read {name!r} from zip archive: {exc}") from exc
        return ZipFileWrapper(data)

    def mkdir(self, path: PathArg) -> None:
        raise self._refuse("mkdir", path)

    def rm(self, path: PathArg) -> None:
        raise self._refuse("rm", path)

    def rmrf(self, path: PathArg) -> None:
        raise self._refuse("rmrf", path)

    def exists(self, path: PathArg) -> bool:
        try:
            name = _path_str(path)
        except FilesystemError:
            return False
        try:
            self._archive.getinfo(name)
        except KeyError:
            return False
        return True

    def metadata(self, path: PathArg) -> Metadata:
        name = _path_str(path)
        try:
            info = self._archive.getinfo(name)
        except KeyError as exc:
            raise FilesystemError(f"Metadata not found in zip file for {name}") from exc
        return Metadata(is_dir=False, is_file=True, length=info.file_size)

    def read_dir(self, path: PathArg) -> Iterator[PurePosixPath]:
        prefix = _path_str(path)
        found = [PurePosixPath(name) for name in self._index if name.startswith(prefix)]
        return iter(found)

    def to_path_buf(self) -> Optional[Path]:
        return self._source