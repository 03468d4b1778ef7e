import io
import zipfile
from pathlib import Path, PurePosixPath

import pytest

from layeredfs.errors import FilesystemError, ResourceNotFoundError
from layeredfs.vfs import OpenOptions, OverlayFS
from layeredfs.zipfs import ZipFileWrapper, ZipFS


def _zip_bytes(members):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def zfs():
    data = _zip_bytes(
        {
            "fake_file_name.txt": b"Zip contents!",
            "dir/a.txt": b"aaa",
            "dir/b.txt": b"bb",
            "other.bin": b"\x00\x01",
        }
    )
    return ZipFS.from_read(io.BytesIO(data))


def test_zip_files():
    data = _zip_bytes({"fake_file_name.txt": b"Zip contents!"})
    fs = ZipFS.from_read(io.BytesIO(data))
    assert fs.exists("fake_file_name.txt")
    with fs.open("fake_file_name.txt") as f:
        assert f.read().decode() == "Zip contents!"


def test_exists_missing(zfs):
    assert not zfs.exists("nope.txt")
    assert not zfs.exists(b"fake_file_name.txt")


def test_open_missing_raises(zfs):
    with pytest.raises(FilesystemError):
        zfs.open("nope.txt")


@pytest.mark.parametrize(
    "options",
    [
        OpenOptions(write=True),
        OpenOptions(read=True, create=True),
        OpenOptions(append=True),
        OpenOptions(read=True, truncate=True),
    ],
)
def test_open_altering_options_refused(zfs, options):
    with pytest.raises(FilesystemError):
        zfs.open_options("fake_file_name.txt", options)


def test_create_and_append_refused(zfs):
    with pytest.raises(FilesystemError):
        zfs.create("new.txt")
    with pytest.raises(FilesystemError):
        zfs.append("fake_file_name.txt")


@pytest.mark.parametrize("method", ["mkdir", "rm", "rmrf"])
def test_mutations_refused(zfs, method):
    with pytest.raises(FilesystemError, match="read-only"):
        getattr(zfs, method)("dir")
    assert zfs.exists("dir/a.txt")


def test_metadata(zfs):
    meta = zfs.metadata("fake_file_name.txt")
    assert meta.is_file
    assert not meta.is_dir
    assert meta.length == 13


def test_metadata_missing(zfs):
    with pytest.raises(FilesystemError, match="Metadata not found"):
        zfs.metadata("nope.txt")


def test_read_dir_prefix(zfs):
    entries = sorted(zfs.read_dir("dir/"))
    assert entries == [PurePosixPath("dir/a.txt"), PurePosixPath("dir/b.txt")]
    assert len(list(zfs.read_dir(""))) == 4


def test_to_path_buf_from_read(zfs):
    assert zfs.to_path_buf() is None


def test_from_file(tmp_path):
    archive_path = tmp_path / "data.zip"
    archive_path.write_bytes(_zip_bytes({"x.txt": b"hello"}))
    fs = ZipFS(archive_path)
    assert fs.to_path_buf() == archive_path
    with fs.open("x.txt") as f:
        assert f.read() == b"hello"


def test_missing_archive_file(tmp_path):
    with pytest.raises(FilesystemError):
        ZipFS(tmp_path / "absent.zip")


def test_invalid_archive():
    with pytest.raises(FilesystemError, match="Invalid zip archive"):
        ZipFS.from_read(io.BytesIO(b"not a zip at all"))


def test_wrapper_read_seek():
    wrapper = ZipFileWrapper(b"line one\nline two\n")
    assert wrapper.readline() == b"line one\n"
    assert wrapper.tell() == 9
    wrapper.seek(5)
    assert wrapper.read(3) == b"one"
    wrapper.seek(-4, io.SEEK_END)
    assert wrapper.read() == b"two\n"


def test_wrapper_write_refused():
    wrapper = ZipFileWrapper(b"abc")
    assert not wrapper.writable()
    with pytest.raises(FilesystemError, match="Cannot write"):
        wrapper.write(b"x")
    wrapper.seek(0)
    assert wrapper.read() == b"abc"


def test_overlay_with_zip(zfs, tmp_path):
    overlay = OverlayFS()
    overlay.push_back(zfs)
    assert overlay.exists("dir/a.txt")
    with overlay.open("dir/b.txt") as f:
        assert f.read() == b"bb"
    with pytest.raises(ResourceNotFoundError) as info:
        overlay.open("missing.txt")
    assert info.value.tried[0][0] == Path("<invalid path>")
    assert isinstance(info.value.tried[0][1], FilesystemError)