"""
GCAD Utilities Module - Formatting and file helpers.

This module provides the numeric formatting used for G-code words and the
file reading/writing collaborators of the compiler.
"""

import os
import tempfile
from pathlib import Path
from typing import Union

from gcad_errors import ScriptIOError

PathLike = Union[str, os.PathLike]


def format_number(value: float) -> str:
    """
    Format a G-code word value.

    Values are rounded to 3 decimal places, then trailing zeros and a
    trailing decimal point are removed. Negative zero prints as "0".

    Args:
        value: Value to format

    Returns:
        Formatted number like "12.5" or "-3"
    """
    text = f"{float(value):.3f}".rstrip("0").rstrip(".")
    if text == "-0":
        return "0"
    return text


def humansize(nbytes: Union[int, float]) -> str:
    """
    Size of a written program for the compile summary, e.g. "1.5 KB".

    Args:
        nbytes: Program size in bytes

    Returns:
        Size with a binary (1024 based) unit suffix
    """
    suffixes = ['B', 'KB', 'MB', 'GB', 'TB', 'PB']
    nbytes = int(nbytes)
    i = 0
    while nbytes >= 1024 and i < len(suffixes) - 1:
        nbytes /= 1024.0
        i += 1
    f = ('%.2f' % nbytes).rstrip('0').rstrip('.')
    return f'{f} {suffixes[i]}'


def read_script(filename: PathLike) -> str:
    """
    Read a UTF-8 script file.

    Args:
        filename: Path to script

    Returns:
        Script text

    Raises:
        ScriptIOError: If the file is missing or unreadable
    """
    try:
        with open(filename, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise ScriptIOError(f"File not found: {filename}")
    except (OSError, UnicodeDecodeError) as e:
        raise ScriptIOError(f"Cannot read file {filename}: {e}")


def write_program(filename: PathLike, text: str) -> int:
    """
    Atomically write a finished G-code program.

    The text goes to a temporary file in the destination directory which
    then replaces the target, so a failed write never leaves a truncated
    program behind.

    Args:
        filename: Output path
        text: Program text

    Returns:
        Number of bytes written

    Raises:
        ScriptIOError: If the file cannot be written
    """
    path = Path(filename)
    data = text.encode("utf-8")
    directory = path.parent if str(path.parent) else Path(".")
    try:
        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    except OSError as e:
        raise ScriptIOError(f"Cannot write file {filename}: {e}")

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_name, path)
    except OSError as e:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise ScriptIOError(f"Cannot write file {filename}: {e}")
    return len(data)
