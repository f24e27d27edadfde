import shutil
import tempfile
import threading
import unittest
from pathlib import Path

import pytest

import modelrt as mr
from modelrt import file_io


def _fits(value, width):
    bits = 8 * abs(width)
    return -(2 ** (bits - 1)) <= value < 2 ** (bits - 1)


_INTEGERS = [0, 1, -1, 127, -128, 300, -40000, 2**31 - 1, -(2**40), 2**63 - 1, -(2**63)]


@pytest.fixture
def scratch(tmp_path):
    handles = []

    def _open(name="data.bin", opener=file_io.open_write_truncate, binary=True):
        handle = opener(tmp_path / name, binary)
        assert handle > 0
        handles.append(handle)
        return handle

    yield _open
    for handle in handles:
        if handle in file_io._registry.open_handles():
            file_io.close(handle)


@pytest.mark.parametrize("width", [1, -1, 2, -2, 4, -4, 8, -8])
def test_binary_integer_round_trip(scratch, width):
    handle = scratch()
    values = [v for v in _INTEGERS if _fits(v, width)]
    for value in values:
        assert file_io.write_integer(handle, value, width)
    file_io.seek(handle, 0)
    for value in values:
        assert file_io.read_integer(handle, width) == (value, True)
    assert file_io.read_integer(handle, width) == (0, False)


def test_byte_order_follows_width_sign(scratch, tmp_path):
    handle = scratch("order.bin")
    file_io.write_integer(handle, 0x0102, 2)
    file_io.write_integer(handle, 0x0102, -2)
    file_io.close(handle)
    assert (tmp_path / "order.bin").read_bytes() == b"\x02\x01\x01\x02"


def test_oversized_width_is_clamped(scratch):
    handle = scratch()
    file_io.write_integer(handle, -5, 12)
    file_io.seek(handle, 0)
    assert file_io.read_integer(handle, 8) == (-5, True)


def test_values_wrap_to_width(scratch):
    handle = scratch()
    file_io.write_integer(handle, 200, 1)
    file_io.seek(handle, 0)
    assert file_io.read_integer(handle, 1) == (-56, True)


@pytest.mark.parametrize("width", [4, -4, 8, -8])
def test_binary_real_round_trip(scratch, width):
    handle = scratch()
    for value in (1.5, -0.25, 1e10):
        file_io.write_real(handle, value, width)
    file_io.seek(handle, 0)
    for value in (1.5, -0.25, 1e10):
        assert file_io.read_real(handle, width) == (value, True)


def test_real_width_must_be_supported(scratch):
    handle = scratch()
    with pytest.raises(mr.InvalidParameterValue):
        file_io.write_real(handle, 1.0, 3)
    with pytest.raises(mr.InvalidParameterValue):
        file_io.read_real(handle, 2)


def test_text_numbers(scratch):
    handle = scratch("numbers.txt", binary=False)
    file_io.write_string(handle, "-42 0x1f 0b101 +7 2.5e3 x")
    file_io.seek(handle, 0)
    assert file_io.read_integer(handle) == (-42, True)
    assert file_io.read_byte(handle) == (ord(" "), True)
    assert file_io.read_integer(handle) == (31, True)
    file_io.read_byte(handle)
    assert file_io.read_integer(handle) == (5, True)
    file_io.read_byte(handle)
    assert file_io.read_integer(handle) == (7, True)
    file_io.read_byte(handle)
    assert file_io.read_real(handle) == (2500.0, True)
    file_io.read_byte(handle)
    assert file_io.read_integer(handle) == (0, False)
    # The rejected character is left unread.
    assert file_io.read_byte(handle) == (ord("x"), True)


def test_text_round_trip_of_writes(scratch):
    handle = scratch("written.txt", binary=False)
    file_io.write_integer(handle, 123)
    file_io.write_string(handle, ",")
    file_io.write_real(handle, 0.1)
    file_io.seek(handle, 0)
    assert file_io.read_integer(handle) == (123, True)
    file_io.read_byte(handle)
    assert file_io.read_real(handle) == (0.1, True)


class TestStrings(unittest.TestCase):
    def setUp(self):
        self.dir = Path(tempfile.mkdtemp())
        self.path = self.dir / "lines.txt"
        self.handle = file_io.open_write_truncate(self.path)
        self.assertGreater(self.handle, 0)

    def tearDown(self):
        if self.handle in file_io._registry.open_handles():
            file_io.close(self.handle)
        shutil.rmtree(self.dir, ignore_errors=True)

    def test_read_lines(self):
        file_io.write_string(self.handle, "hello\r\n")
        file_io.write_string(self.handle, "world", newline=True)
        file_io.seek(self.handle, 0)
        self.assertEqual(file_io.read_string(self.handle), ("hello", True))
        self.assertEqual(file_io.read_string(self.handle), ("world", True))
        self.assertEqual(file_io.read_string(self.handle), ("", False))

    def test_read_counted_utf8(self):
        file_io.write_string(self.handle, mr.Tuple("héllo"))
        file_io.seek(self.handle, 0)
        self.assertEqual(file_io.read_string(self.handle, 2), ("hé", True))
        self.assertEqual(file_io.read_string(self.handle, -1), ("llo", True))

    def test_short_counted_read_reports_failure(self):
        file_io.write_string(self.handle, "ab")
        file_io.seek(self.handle, 0)
        self.assertEqual(file_io.read_string(self.handle, 5), ("ab", False))

    def test_bytes(self):
        file_io.write_byte(self.handle, 0)
        file_io.write_byte(self.handle, 255)
        with self.assertRaises(mr.InvalidParameterValue):
            file_io.write_byte(self.handle, 256)
        file_io.seek(self.handle, 0)
        self.assertEqual(file_io.read_byte(self.handle), (0, True))
        self.assertEqual(file_io.read_byte(self.handle), (255, True))
        self.assertEqual(file_io.read_byte(self.handle), (-1, False))

    def test_append_mode(self):
        file_io.write_string(self.handle, "ab")
        file_io.close(self.handle)
        self.handle = file_io.open_write_append(self.path)
        file_io.write_string(self.handle, "cd")
        file_io.close(self.handle)
        self.assertEqual(self.path.read_text(), "abcd")


class TestHandles(unittest.TestCase):
    def setUp(self):
        self.dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        for handle in file_io._registry.open_handles():
            file_io.close(handle)
        shutil.rmtree(self.dir, ignore_errors=True)

    def test_missing_file_opens_as_zero(self):
        self.assertEqual(file_io.open_read(self.dir / "missing.txt"), 0)

    def test_closed_handle_is_reused(self):
        first = file_io.open_write_truncate(self.dir / "a.txt")
        file_io.close(first)
        second = file_io.open_write_truncate(self.dir / "b.txt")
        self.assertEqual(first, second)

    def test_closed_handle_is_invalid(self):
        handle = file_io.open_write_truncate(self.dir / "a.txt")
        file_io.close(handle)
        with self.assertRaises(mr.InvalidFileNumber) as ctx:
            file_io.read_byte(handle)
        self.assertEqual(ctx.exception.file_number, handle)
        with self.assertRaises(mr.InvalidFileNumber):
            file_io.close(handle)
        with self.assertRaises(mr.InvalidFileNumber):
            file_io.read_byte(10_000)

    def test_exists_and_delete(self):
        path = self.dir / "gone.txt"
        handle = file_io.open_write_truncate(path)
        self.assertTrue(file_io.exists(path))
        self.assertTrue(file_io.delete(handle))
        self.assertFalse(file_io.exists(path))
        self.assertFalse(file_io.delete(path))

    def test_paths_may_be_tuples(self):
        path = self.dir / "tuple.txt"
        handle = file_io.open_write_truncate(mr.Tuple(str(path)))
        self.assertGreater(handle, 0)
        file_io.close(handle)
        self.assertTrue(file_io.exists(mr.Tuple(str(path))))

    def test_read_only_handle_rejects_writes(self):
        path = self.dir / "ro.txt"
        path.write_text("x")
        handle = file_io.open_read(path)
        with self.assertRaises(mr.FileWriteError):
            file_io.write_string(handle, "y")


def test_concurrent_opens_hand_out_distinct_handles(tmp_path):
    live = {}
    guard = threading.Lock()
    errors = []

    def worker(n):
        try:
            for _ in range(25):
                handle = file_io.open_write_truncate(tmp_path / f"worker{n}.txt")
                assert handle > 0
                with guard:
                    assert handle not in live, f"handle {handle} handed out twice"
                    live[handle] = n
                file_io.write_string(handle, str(n))
                with guard:
                    del live[handle]
                file_io.close(handle)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert live == {}
    for n in range(8):
        assert (tmp_path / f"worker{n}.txt").read_text() == str(n)
