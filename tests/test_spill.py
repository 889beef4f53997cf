import os
from unittest.mock import MagicMock, patch

import pytest

from rewindable import spill as spill_module
from rewindable.spill import SpillFile, SpillOptions, SpillWriteError, has_posix_semantics


@pytest.fixture
def non_posix():
    with patch("rewindable.spill.has_posix_semantics", return_value=False):
        yield


def test_has_posix_semantics(monkeypatch):
    monkeypatch.setattr(spill_module.os, "name", "posix")
    monkeypatch.setattr(spill_module.sys, "platform", "linux")
    assert has_posix_semantics()

    monkeypatch.setattr(spill_module.sys, "platform", "cygwin")
    assert not has_posix_semantics()

    monkeypatch.setattr(spill_module.os, "name", "nt")
    monkeypatch.setattr(spill_module.sys, "platform", "win32")
    assert not has_posix_semantics()


@pytest.mark.skipif(os.name != "posix", reason="needs unlink-while-open semantics")
def test_posix_spill_is_unlinked_immediately():
    spill = SpillFile()
    try:
        assert spill.posix_semantics
        assert spill.unlinked
        assert not os.path.exists(spill.path)
        spill.append(b"still usable")
        assert spill.read_at(0) == b"still usable"
    finally:
        spill.close()


def test_non_posix_spill_removed_on_close(non_posix):
    spill = SpillFile()
    assert not spill.unlinked
    assert os.path.exists(spill.path)
    spill.close()
    assert spill.closed
    assert not os.path.exists(spill.path)


def test_options(tmp_path, non_posix):
    spill = SpillFile(SpillOptions(prefix="Upload", directory=str(tmp_path)))
    try:
        assert os.path.dirname(spill.path) == str(tmp_path)
        assert os.path.basename(spill.path).startswith("Upload")
    finally:
        spill.close()
    assert list(tmp_path.iterdir()) == []


def test_append_and_read():
    spill = SpillFile()
    try:
        assert spill.full_writes
        spill.append(b"one\ntwo\n")
        spill.append(bytearray(b"three"))
        assert spill.length == 13
        assert spill.read_at(0) == b"one\ntwo\nthree"
        assert spill.read_at(4, 3) == b"two"
        assert spill.read_at(8, 100) == b"three"
        assert spill.read_at(13) == b""
        assert spill.read_at(0, 0) == b""
        assert spill.readline_at(0, 100) == b"one\n"
        assert spill.readline_at(4, 2) == b"tw"
        assert spill.readline_at(8, 100) == b"three"
    finally:
        spill.close()


def test_append_after_read_keeps_order():
    spill = SpillFile()
    try:
        spill.append(b"abc")
        assert spill.read_at(0, 1) == b"a"
        spill.append(b"def")
        assert spill.read_at(0) == b"abcdef"
    finally:
        spill.close()


def test_append_retries_short_writes():
    class OneByte(SpillFile):
        def write(self, data) -> int:
            return super().write(data[:1])

    spill = OneByte()
    try:
        spill.append(b"partial")
        assert spill.length == 7
        assert spill.read_at(0) == b"partial"
    finally:
        spill.close()


def test_append_gives_up_when_nothing_is_written():
    class Stuck(SpillFile):
        def write(self, data) -> int:
            return 0

    spill = Stuck()
    try:
        with pytest.raises(SpillWriteError) as excinfo:
            spill.append(b"data")
        assert isinstance(excinfo.value, OSError)
        assert spill.length == 0
    finally:
        spill.close()


def test_close_is_idempotent():
    spill = SpillFile()
    spill.close()
    spill.close()
    assert spill.closed


def test_close_tolerates_missing_file(non_posix):
    spill = SpillFile()
    os.unlink(spill.path)
    spill.close()
    assert spill.closed


def test_close_releases_path_when_flush_fails(non_posix):
    spill = SpillFile()
    real_file = spill._file
    spill._file = MagicMock(closed=False)
    spill._file.close.side_effect = OSError(28, "No space left on device")

    with pytest.raises(OSError):
        spill.close()
    assert spill.unlinked
    assert not os.path.exists(spill.path)
    real_file.close()


def test_failed_setup_leaks_nothing(tmp_path):
    opened = []
    real_fdopen = os.fdopen

    def tracking_fdopen(*args, **kwargs):
        opened.append(real_fdopen(*args, **kwargs))
        return opened[-1]

    with patch("rewindable.spill.has_posix_semantics", return_value=True), patch(
        "rewindable.spill.os.fdopen", side_effect=tracking_fdopen
    ), patch("rewindable.spill.os.chmod", side_effect=PermissionError("chmod denied")):
        with pytest.raises(PermissionError):
            SpillFile(SpillOptions(directory=str(tmp_path)))

    assert opened[0].closed
    assert list(tmp_path.iterdir()) == []
