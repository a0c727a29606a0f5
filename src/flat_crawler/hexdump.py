from flat_crawler.core.cursor import Buffer

DEFAULT_DUMP_LENGTH = 0x100
_WIDTH = 16


def _printable(value: int) -> str:
    return chr(value) if 32 <= value < 127 else "."


def dump(data: Buffer, offset: int, length: int = DEFAULT_DUMP_LENGTH) -> str:
    """Render ``length`` bytes of ``data`` from ``offset`` as hex + ASCII rows.

    Rows are aligned to 16-byte boundaries; bytes before ``offset`` on the first
    row are left blank and the window is clamped to the end of the buffer.
    """
    if offset < 0 or offset >= len(data):
        raise ValueError(f"Offset 0x{offset:X} is outside the buffer (length 0x{len(data):X})")

    start = offset - offset % _WIDTH
    end = min(len(data), offset + max(length, 1))
    lines = []
    for row in range(start, end, _WIDTH):
        hex_cells = []
        text_cells = []
        for position in range(row, row + _WIDTH):
            if position < offset or position >= end:
                hex_cells.append("  ")
                text_cells.append(" ")
            else:
                hex_cells.append(f"{data[position]:02X}")
                text_cells.append(_printable(data[position]))
        lines.append(f"{row:08X}: {' '.join(hex_cells)}  |{''.join(text_cells)}|")
    return "\n".join(lines)
