"""Size parsing, measurement and formatting for reclaim."""

import os
from pathlib import Path

from reclaim.errors import InvalidSizeFormat, SizeOverflow

U64_MAX = 2**64 - 1

# Binary units must be tested before decimal ones: "MIB" also ends with "B"
# but must not be read as "MI" + "B".
SIZE_UNITS: list[tuple[str, int]] = [
    ("GIB", 1024**3),
    ("MIB", 1024**2),
    ("KIB", 1024),
    ("GB", 1000**3),
    ("MB", 1000**2),
    ("KB", 1000),
]

NANO = 1_000_000_000
MAX_FRACTION_DIGITS = 9


def parse_size(text: str) -> int:
    """
    Parse a human-readable size threshold into bytes.

    Accepts plain byte counts ("1000"), decimal units ("100KB", "1.5MB"),
    and binary units ("1KiB", "2GiB"). Units are case-insensitive.

    Args:
        text: Size string to parse

    Returns:
        Number of bytes

    Raises:
        InvalidSizeFormat: If the string is not a valid size
        SizeOverflow: If the value does not fit in 64 unsigned bits
    """
    if text == "0":
        return 0

    value = text.strip().upper()
    number, multiplier = _split_unit(value)

    if not number:
        raise InvalidSizeFormat(f"Invalid size: {text!r}")

    if "." in number:
        return _parse_decimal(number, multiplier, text)
    return _checked_mul(_parse_digits(number, text), multiplier)


def _split_unit(value: str) -> tuple[str, int]:
    for suffix, multiplier in SIZE_UNITS:
        if value.endswith(suffix):
            return value[: -len(suffix)].strip(), multiplier
    return value, 1


def _parse_digits(digits: str, original: str) -> int:
    if not (digits.isascii() and digits.isdigit()):
        raise InvalidSizeFormat(f"Invalid number in size: {original!r}")
    return int(digits)


def _parse_decimal(number: str, multiplier: int, original: str) -> int:
    parts = number.split(".")
    if len(parts) != 2:
        raise InvalidSizeFormat(f"Invalid decimal format: {original!r}")

    integer_str, fraction_str = parts
    if len(fraction_str) > MAX_FRACTION_DIGITS:
        raise InvalidSizeFormat(f"Too many decimal places: {original!r}")

    integer_part = _parse_digits(integer_str, original)
    fraction_nanos = _parse_digits(fraction_str, original) * 10 ** (
        MAX_FRACTION_DIGITS - len(fraction_str)
    )

    integer_bytes = _checked_mul(integer_part, multiplier)
    fraction_bytes = _checked_mul(fraction_nanos, multiplier) // NANO
    return _checked_add(integer_bytes, fraction_bytes)


def _checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > U64_MAX:
        raise SizeOverflow(f"Size value overflow: {a} * {b}")
    return result


def _checked_add(a: int, b: int) -> int:
    result = a + b
    if result > U64_MAX:
        raise SizeOverflow(f"Size value overflow: {a} + {b}")
    return result


def dir_size(path: Path) -> int:
    """
    Total size of the regular files under a directory.

    Symlinks are not followed. Entries that cannot be read are skipped, and a
    missing path counts as empty, so this never raises.

    Args:
        path: Directory to measure

    Returns:
        Size in bytes
    """
    total = 0
    pending = [os.fspath(path)]

    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                        elif entry.is_dir(follow_symlinks=False):
                            pending.append(entry.path)
                    except OSError:
                        continue
        except OSError:
            continue

    return total


def format_size(size_bytes: int) -> str:
    """Format bytes to a human-readable string (decimal units)."""
    if size_bytes >= 1000**4:
        return f"{size_bytes / (1000**4):.1f} TB"
    elif size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"
