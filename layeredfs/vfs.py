"""Virtual file systems with different backing stores that can be layered."""

from __future__ import annotations

import os
import shutil
import stat
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO, Optional, Union

from layeredfs.errors import FilesystemError, GameError, ResourceNotFoundError

PathArg = Union[str, "os.PathLike[str]"]

_INVALID_ROOT = Path("<invalid path>")


@contextmanager
def _os_errors() -> Iterator[None]:
    try:
        yield
    except OSError as exc:
        raise FilesystemError(str(exc)) from exc


@dataclass(frozen=True)
class OpenOptions:
    """How a file is to be opened."""

    read: bool = False
    write: bool = False
    create: bool = False
    append: bool = False
    truncate: bool = False

    def alters(self) -> bool:
        """Whether opening with these options may change the file system."""
        return self.write or self.create or self.append or self.truncate

    def _flags(self) -> int:
        if self.append:
            access = os.O_RDWR if self.read else os.O_WRONLY
            access |= os.O_APPEND
        elif self.read and self.write:
            access = os.O_RDWR
        elif self.write:
            access = os.O_WRONLY
        elif self.read:
            access = os.O_RDONLY
        else:
            raise FilesystemError("Invalid open options: no access mode requested")

        if not self.write and not self.append:
            if self.truncate or self.create:
                raise FilesystemError(
                    "Invalid open options: create or truncate requires write access"
                )
        elif self.append and self.truncate:
            raise FilesystemError("Invalid open options: cannot both append and truncate")

        flags = access | getattr(os, "O_BINARY", 0)
        if self.create:
            flags |= os.O_CREAT
        if self.truncate:
            flags |= os.O_TRUNC
        return flags

    def _mode(self) -> str:
        if self.append:
            return "a+b" if self.read else "ab"
        if self.write:
            return "r+b" if self.read else "wb"
        return "rb"


@dataclass(frozen=True)
class Metadata:
    """What is known about a file or directory."""

    is_dir: bool
    is_file: bool
    length: int


class VFS(ABC):
    """A file system with a root at "/"."""

    @abstractmethod
    def open_options(self, path: PathArg, options: OpenOptions) -> IO[bytes]:
        """Open the file at this path with the given options."""

    def open(self, path: PathArg) -> IO[bytes]:
        """Open the file at this path for reading."""
        return self.open_options(path, OpenOptions(read=True))

    def create(self, path: PathArg) -> IO[bytes]:
        """Open the file for writing, truncating it if it exists already."""
        return self.open_options(path, OpenOptions(write=True, create=True, truncate=True))

    def append(self, path: PathArg) -> IO[bytes]:
        """Open the file for appending, creating it if necessary."""
        return self.open_options(path, OpenOptions(write=True, create=True, append=True))

    @abstractmethod
    def mkdir(self, path: PathArg) -> None:
        """Create a directory, with its parents, at this path."""

    @abstractmethod
    def rm(self, path: PathArg) -> None:
        """Remove a file or an empty directory."""

    @abstractmethod
    def rmrf(self, path: PathArg) -> None:
        """Remove a file or a directory and all its contents."""

    @abstractmethod
    def exists(self, path: PathArg) -> bool:
        """Whether something exists at this path."""

    @abstractmethod
    def metadata(self, path: PathArg) -> Metadata:
        """Metadata of the file or directory at this path."""

    @abstractmethod
    def read_dir(self, path: PathArg) -> Iterator[PurePosixPath]:
        """The entries of the directory at this path."""

    @abstractmethod
    def to_path_buf(self) -> Optional[Path]:
        """The real location of the root, if there is one."""


def sanitize_path(path: PathArg) -> Optional[PurePosixPath]:
    """Turn an absolute path without ".." into a relative one, or return None."""
    text = os.fspath(path)
    if not isinstance(text, str) or not text.startswith("/"):
        return None
    parts = []
    for part in text.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            return None
        parts.append(part)
    return PurePosixPath(*parts)


class PhysicalFS(VFS):
    """A file system rooted at a directory on disk."""

    def __init__(self, root: PathArg, readonly: bool) -> None:
        self.root = Path(root)
        self.readonly = readonly

    def __repr__(self) -> str:
        return f"<PhysicalFS root: {self.root}>"

    def _to_absolute(self, path: PathArg) -> Path:
        safe = sanitize_path(path)
        if safe is None:
            raise FilesystemError(
                f"Path {os.fspath(path)!r} is not valid: must be an absolute path "
                "with no references to parent directories"
            )
        return self.root / safe

    def _create_root(self) -> None:
        if not self.root.exists():
            with _os_errors():
                self.root.mkdir(parents=True, exist_ok=True)

    def _refuse_if_readonly(self, action: str, path: PathArg) -> None:
        if self.readonly:
            raise FilesystemError(
                f"Tried to {action} {os.fspath(path)!r} but FS is read-only"
            )

    def open_options(self, path: PathArg, options: OpenOptions) -> IO[bytes]:
        if self.readonly and options.alters():
            raise FilesystemError(
                f"Cannot alter file {os.fspath(path)!r} in root {self!r}, "
                "filesystem read-only"
            )
        self._create_root()
        target = self._to_absolute(path)
        flags = options._flags()
        with _os_errors():
            fd = os.open(target, flags, 0o666)
            try:
                return os.fdopen(fd, options._mode())
            except BaseException:
                os.close(fd)
                raise

    def mkdir(self, path: PathArg) -> None:
        self._refuse_if_readonly("make directory", path)
        self._create_root()
        target = self._to_absolute(path)
        with _os_errors():
            target.mkdir(parents=True, exist_ok=True)

    def rm(self, path: PathArg) -> None:
        self._refuse_if_readonly("remove file", path)
        self._create_root()
        target = self._to_absolute(path)
        with _os_errors():
            if target.is_dir():
                target.rmdir()
            else:
                target.unlink()

    def rmrf(self, path: PathArg) -> None:
        self._refuse_if_readonly("remove file/dir", path)
        self._create_root()
        target = self._to_absolute(path)
        with _os_errors():
            if target.is_dir():
                shutil.rmtree(target)
            else:
                target.unlink()

    def exists(self, path: PathArg) -> bool:
        try:
            return self._to_absolute(path).exists()
        except FilesystemError:
            return False

    def metadata(self, path: PathArg) -> Metadata:
        self._create_root()
        target = self._to_absolute(path)
        with _os_errors():
            info = target.stat()
        return Metadata(
            is_dir=stat.S_ISDIR(info.st_mode),
            is_file=stat.S_ISREG(info.st_mode),
            length=info.st_size,
        )

    def read_dir(self, path: PathArg) -> Iterator[PurePosixPath]:
        self._create_root()
        target = self._to_absolute(path)
        base = PurePosixPath(os.fspath(path))
        with _os_errors():
            with os.scandir(target) as entries:
                found = [base / entry.name for entry in entries]
        return iter(found)

    def to_path_buf(self) -> Optional[Path]:
        return self.root


class OverlayFS(VFS):
    """Several file systems joined in order; the first that succeeds wins."""

    def __init__(self) -> None:
        self._roots: deque[VFS] = deque()

    def __repr__(self) -> str:
        return f"<OverlayFS roots: {list(self._roots)!r}>"

    def push_front(self, fs: VFS) -> None:
        """Add a file system to the front of the list."""
        self._roots.appendleft(fs)

    def push_back(self, fs: VFS) -> None:
        """Add a file system to the end of the list."""
        self._roots.append(fs)

    def roots(self) -> deque[VFS]:
        """The layered file systems, in search order."""
        return self._roots

    def open_options(self, path: PathArg, options: OpenOptions) -> IO[bytes]:
        tried: list[tuple[Path, GameError]] = []
        for fs in self._roots:
            try:
                return fs.open_options(path, options)
            except GameError as err:
                root = fs.to_path_buf()
                tried.append((root if root is not None else _INVALID_ROOT, err))
        raise ResourceNotFoundError(os.fspath(path), tried)

    def mkdir(self, path: PathArg) -> None:
        for fs in self._roots:
            try:
                fs.mkdir(path)
                return
            except GameError:
                continue
        raise FilesystemError(
            f"Could not find anywhere writeable to make dir {os.fspath(path)!r}"
        )

    def rm(self, path: PathArg) -> None:
        for fs in self._roots:
            try:
                fs.rm(path)
                return
            except GameError:
                continue
        raise FilesystemError(f"Could not remove file {os.fspath(path)!r}")

    def rmrf(self, path: PathArg) -> None:
        for fs in self._roots:
            try:
                fs.rmrf(path)
                return
            except GameError:
                continue
        raise FilesystemError(f"Could not remove file/dir {os.fspath(path)!r}")

    def exists(self, path: PathArg) -> bool:
        return any(fs.exists(path) for fs in self._roots)

    def metadata(self, path: PathArg) -> Metadata:
        for fs in self._roots:
            try:
                return fs.metadata(path)
            except GameError:
                continue
        raise FilesystemError(
            f"Could not get metadata for file/dir {os.fspath(path)!r}"
        )

    def read_dir(self, path: PathArg) -> Iterator[PurePosixPath]:
        merged: list[PurePosixPath] = []
        for fs in self._roots:
            try:
                merged.extend(fs.read_dir(path))
            except GameError:
                continue
        return iter(merged)

    def to_path_buf(self) -> Optional[Path]:
        return None