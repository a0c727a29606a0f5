"""Tests for the hex dump renderer."""

import pytest

from flat_crawler.hexdump import dump

ALPHABET = b"ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def test_rows_are_aligned_and_leading_bytes_blank() -> None:
    lines = dump(ALPHABET, 0x12, 4).splitlines()
    assert len(lines) == 1
    line = lines[0]
    assert line.startswith("00000010: ")
    assert "53 54 55 56" in line
    assert "51 52" not in line
    assert line.endswith("|  STUV          |")


def test_window_is_clamped_to_buffer() -> None:
    lines = dump(b"abc", 0, 100).splitlines()
    assert lines == [f"00000000: 61 62 63{'   ' * 13}  |abc             |"]


def test_default_length_spans_rows() -> None:
    lines = dump(bytes(40), 0).splitlines()
    assert [line[:8] for line in lines] == ["00000000", "00000010", "00000020"]


def test_unprintable_bytes_shown_as_dots() -> None:
    assert dump(b"\x00\x7fA\n", 0).endswith("|..A.            |")


@pytest.mark.parametrize("offset", [-1, 3, 100])
def test_offset_outside_buffer(offset: int) -> None:
    with pytest.raises(ValueError):
        dump(b"abc", offset)
