# SPDX-FileCopyrightText: 2014-2025 Fredrik Ahlberg, Angus Gratton,
# Espressif Systems (Shanghai) CO LTD, other contributors as noted.
#
# SPDX-License-Identifier: GPL-2.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import IO, Callable

from .headers import (
    EC_HDR_SIZE,
    UBI_MAX_ERASECOUNTER,
    UBI_VERSION,
    VID_HDR_SIZE,
    ECHeader,
    VIDHeader,
    VolumeType,
    crc32,
)
from .logger import log
from .util import (
    ConfigurationError,
    ImageIOError,
    ImageStateError,
    InputContractError,
    align_up,
    div_roundup,
    get_stream_size,
)

UBI_MAX_VOLUME_ID = 0xFFFFFFFF


@dataclass(frozen=True)
class VolumeGeometry:
    """
    Physical layout of the flash the image is created for.

    sub_page_size defaults to min_io_size and vid_hdr_offset to the second
    sub-page when left as None/0. The usable area of each eraseblock
    (leb_size) starts right after the VID header and is shrunk to a multiple
    of alignment; the rest is reported as data_pad.
    """

    peb_size: int
    min_io_size: int
    sub_page_size: int | None = None
    vid_hdr_offset: int = 0
    alignment: int = 1

    def __post_init__(self):
        if self.peb_size <= 0:
            raise ConfigurationError(
                f"Bad physical eraseblock size {self.peb_size}, must be positive."
            )
        if self.min_io_size <= 0:
            raise ConfigurationError(
                f"Bad min. I/O unit size {self.min_io_size}, must be positive."
            )
        if self.peb_size % self.min_io_size:
            raise ConfigurationError(
                f"Physical eraseblock size {self.peb_size} is not a multiple "
                f"of min. I/O unit size {self.min_io_size}."
            )
        # frozen dataclass, defaults have to go through object.__setattr__
        if self.sub_page_size is None:
            object.__setattr__(self, "sub_page_size", self.min_io_size)
        if self.sub_page_size <= 0:
            raise ConfigurationError(
                f"Bad sub-page size {self.sub_page_size}, must be positive."
            )
        if self.sub_page_size > self.min_io_size:
            raise ConfigurationError(
                f"Sub-page size {self.sub_page_size} is greater than "
                f"min. I/O unit size {self.min_io_size}."
            )
        if self.alignment <= 0:
            raise ConfigurationError(
                f"Bad volume alignment {self.alignment}, must be positive."
            )
        if self.vid_hdr_offset < 0:
            raise ConfigurationError(
                f"Bad VID header offset {self.vid_hdr_offset}, must not be negative."
            )
        if self.vid_hdr_offset == 0:
            object.__setattr__(
                self,
                "vid_hdr_offset",
                align_up(self.sub_page_size * 2, self.sub_page_size),
            )
        if self.vid_hdr_offset < EC_HDR_SIZE:
            raise ConfigurationError(
                f"VID header offset {self.vid_hdr_offset} overlaps the "
                f"{EC_HDR_SIZE} bytes EC header."
            )
        if self.vid_hdr_offset + VID_HDR_SIZE > self.peb_size:
            raise ConfigurationError(
                f"VID header offset {self.vid_hdr_offset} leaves no room for the "
                f"{VID_HDR_SIZE} bytes VID header in a {self.peb_size} bytes "
                "physical eraseblock."
            )
        if self.leb_size <= 0:
            raise ConfigurationError(
                f"No usable data area left in a {self.peb_size} bytes physical "
                f"eraseblock with VID header offset {self.vid_hdr_offset} "
                f"and alignment {self.alignment}."
            )

    @property
    def data_offset(self) -> int:
        return self.vid_hdr_offset + VID_HDR_SIZE

    @property
    def data_pad(self) -> int:
        return (self.peb_size - self.data_offset) % self.alignment

    @property
    def leb_size(self) -> int:
        return self.peb_size - self.data_offset - self.data_pad


@dataclass(frozen=True)
class VolumeParams:
    vol_id: int
    vol_type: VolumeType = VolumeType.DYNAMIC
    erase_counter: int = 0
    ubi_format_version: int = UBI_VERSION
    declared_data_length: int | None = None
    compat: int = 0
    image_seq: int = 0

    def __post_init__(self):
        if not 0 <= self.vol_id <= UBI_MAX_VOLUME_ID:
            raise ConfigurationError(f"Bad volume ID {self.vol_id}.")
        try:
            object.__setattr__(self, "vol_type", VolumeType(self.vol_type))
        except ValueError:
            raise ConfigurationError(f"Bad volume type {self.vol_type}.") from None
        if not 0 <= self.erase_counter < 1 << 64:
            raise ConfigurationError(f"Bad erase counter value {self.erase_counter}.")
        if not 0 <= self.ubi_format_version <= 0xFF:
            raise ConfigurationError(f"Bad UBI version {self.ubi_format_version}.")
        if not 0 <= self.compat <= 0xFF:
            raise ConfigurationError(f"Bad compatibility flag {self.compat}.")
        if not 0 <= self.image_seq <= 0xFFFFFFFF:
            raise ConfigurationError(f"Bad image sequence number {self.image_seq}.")
        if self.vol_type == VolumeType.STATIC:
            if self.declared_data_length is None:
                raise ConfigurationError(
                    "Data length has to be specified for a static volume."
                )
            if self.declared_data_length < 0:
                raise ConfigurationError(
                    f"Bad data length {self.declared_data_length}."
                )


class BuilderState(Enum):
    INIT = "init"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class ImageBuilder(object):
    """
    Write one UBI volume, eraseblock by eraseblock, from an input stream to an
    output stream.

    The streams are borrowed: they are never closed here. On failure the
    output written so far is left as it is.
    """

    def __init__(
        self,
        geometry: VolumeGeometry,
        params: VolumeParams,
        infile: IO[bytes],
        outfile: IO[bytes],
        progress: Callable[[int, int | None], None] | None = None,
    ) -> None:
        self.geometry = geometry
        self.params = params
        self.infile = infile
        self.outfile = outfile
        self.progress = progress
        self.lnum = 0
        self.sqnum = 0
        self.bytes_written = 0
        self.state = BuilderState.INIT

        if params.vol_type == VolumeType.STATIC:
            self.used_ebs = div_roundup(params.declared_data_length, geometry.leb_size)
        else:
            self.used_ebs = 0
        if params.erase_counter > UBI_MAX_ERASECOUNTER:
            log.warning(
                f"Erase counter {params.erase_counter} is above the maximum "
                f"{UBI_MAX_ERASECOUNTER:#x} accepted by the UBI layer."
            )

    @property
    def is_static(self) -> bool:
        return self.params.vol_type == VolumeType.STATIC

    def _read_chunk(self, size):
        """Read up to size bytes, retrying short reads until EOF"""
        chunks = []
        remaining = size
        while remaining > 0:
            try:
                data = self.infile.read(remaining)
            except OSError as e:
                raise ImageIOError("read input data", e) from e
            if not data:
                break
            chunks.append(data)
            remaining -= len(data)
        return b"".join(chunks)

    def _write(self, data):
        try:
            self.outfile.write(data)
        except OSError as e:
            raise ImageIOError("write output image", e) from e

    def _next_chunk(self):
        """
        Return the payload of the next eraseblock, or None when the volume is
        complete.
        """
        leb_size = self.geometry.leb_size
        if not self.is_static:
            return self._read_chunk(leb_size) or None

        declared = self.params.declared_data_length
        remaining = declared - self.bytes_written
        if remaining == 0:
            return None
        data = self._read_chunk(min(leb_size, remaining))
        if len(data) < min(leb_size, remaining):
            raise InputContractError(self.bytes_written + len(data), declared)
        return data

    def make_ec_header(self) -> bytes:
        return ECHeader(
            ec=self.params.erase_counter,
            vid_hdr_offset=self.geometry.vid_hdr_offset,
            data_offset=self.geometry.data_offset,
            version=self.params.ubi_format_version,
            image_seq=self.params.image_seq,
        ).encode()

    def make_vid_header(self, data: bytes, last: bool) -> bytes:
        data_size = data_crc = 0
        if self.is_static and last:
            data_size = len(data)
            data_crc = crc32(data)
        return VIDHeader(
            vol_type=self.params.vol_type,
            vol_id=self.params.vol_id,
            lnum=self.lnum,
            sqnum=self.sqnum,
            version=self.params.ubi_format_version,
            compat=self.params.compat,
            data_size=data_size,
            used_ebs=self.used_ebs,
            data_pad=self.geometry.data_pad,
            data_crc=data_crc,
        ).encode()

    def _write_block(self, data):
        geometry = self.geometry
        last = (
            self.is_static
            and self.bytes_written + len(data) == self.params.declared_data_length
        )
        ec_hdr = self.make_ec_header()
        vid_hdr = self.make_vid_header(data, last)
        block = b"".join(
            [
                ec_hdr,
                b"\x00" * (geometry.vid_hdr_offset - len(ec_hdr)),
                vid_hdr,
                data,
                b"\x00" * (geometry.peb_size - geometry.data_offset - len(data)),
            ]
        )
        assert len(block) == geometry.peb_size
        self._write(block)

    def write_volume(self) -> int:
        """
        Write the complete volume. Returns the number of eraseblocks written.
        Can be called once per builder.
        """
        if self.state != BuilderState.INIT:
            raise ImageStateError(self.state.value)
        self.state = BuilderState.WRITING
        total = self.params.declared_data_length if self.is_static else None
        try:
            while True:
                data = self._next_chunk()
                if data is None:
                    break
                self._write_block(data)
                self.bytes_written += len(data)
                self.lnum += 1
                self.sqnum += 1
                if self.progress is not None:
                    self.progress(self.bytes_written, total)
            if self.is_static:
                self._check_trailing_input()
        except Exception:
            self.state = BuilderState.FAILED
            raise
        self.state = BuilderState.DONE
        return self.lnum

    def _check_trailing_input(self):
        # unknown for pipes, which are left untouched
        if get_stream_size(self.infile):
            log.warning(
                "Input is longer than the declared data length of the static "
                f"volume, only the first {self.params.declared_data_length} "
                "bytes were used."
            )
