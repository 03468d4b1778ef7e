from pathlib import Path

import pytest

from layeredfs.errors import FilesystemError, GameError, ResourceNotFoundError


def test_filesystem_error_is_game_error():
    err = FilesystemError("disk said no")
    assert str(err) == "disk said no"
    assert isinstance(err, GameError)
    with pytest.raises(GameError) as info:
        raise err
    assert info.value is err


def test_resource_not_found_keeps_path_and_tried():
    inner = FilesystemError("missing")
    err = ResourceNotFoundError("/pew.ogg", [(Path("/res"), inner)])
    assert err.path == "/pew.ogg"
    assert err.tried == [(Path("/res"), inner)]
    assert "/pew.ogg" in str(err)
    assert "missing" in str(err)


def test_resource_not_found_accepts_any_iterable():
    inner = FilesystemError("gone")
    err = ResourceNotFoundError("/a", ((Path("/r"), e) for e in [inner]))
    assert len(err.tried) == 1
    assert err.tried[0][1] is inner


def test_resource_not_found_caught_as_game_error():
    err = ResourceNotFoundError("/x", [])
    assert err.tried == []
    assert err.path == "/x"
    assert "/x" in str(err)
    assert isinstance(err, GameError)