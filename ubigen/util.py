# SPDX-FileCopyrightText: 2014-2025 Fredrik Ahlberg, Angus Gratton,
# Espressif Systems (Shanghai) CO LTD, other contributors as noted.
#
# SPDX-License-Identifier: GPL-2.0-or-later
from __future__ import annotations
import os

from typing import IO, TypeAlias

# Define a custom type for the input
ImageSource: TypeAlias = str | bytes | IO[bytes]


def div_roundup(a, b):
    """Return a/b rounded up to nearest integer,
    equivalent result to int(math.ceil(float(int(a)) / float(int(b))), only
    without possible floating point accuracy errors.
    """
    return (int(a) + int(b) - 1) // int(b)


def align_up(value, alignment):
    """Round value up to the next multiple of alignment"""
    return div_roundup(value, alignment) * alignment


def get_stream_size(stream: IO[bytes]) -> int | None:
    """
    Return the number of bytes left between the current position of a binary
    stream and its end, or None if the stream is not seekable (e.g. a pipe).
    """
    try:
        if not stream.seekable():
            return None
        pos = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(pos)
    except (AttributeError, OSError):
        return None
    return end - pos


class FatalError(RuntimeError):
    """
    Wrapper class for runtime errors that aren't caused by internal bugs, but by
    bad parameters or input content.
    """

    def __init__(self, message):
        RuntimeError.__init__(self, message)


class ConfigurationError(FatalError):
    """
    Invalid flash geometry or volume parameters, detected before any output
    has been written.
    """


class InputContractError(FatalError):
    """
    The input of a static volume ended before the declared data length.
    """

    def __init__(self, consumed, declared):
        self.consumed = consumed
        self.declared = declared
        FatalError.__init__(
            self,
            f"Input ended after {consumed} bytes, "
            f"but the static volume was declared with {declared} bytes.",
        )


class ImageIOError(FatalError):
    """
    Wrapper class for read/write failures on the input or output stream.
    The original OSError is kept as __cause__.
    """

    def __init__(self, operation, err):
        self.operation = operation
        FatalError.__init__(self, f"Cannot {operation}: {err}")


class ImageStateError(FatalError):
    def __init__(self, state):
        FatalError.__init__(
            self,
            f"Image builder is in state '{state}', a volume can be written only once.",
        )


class HeaderError(FatalError):
    """
    A serialized UBI header has the wrong size, magic or checksum.
    """
