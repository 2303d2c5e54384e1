# SPDX-FileCopyrightText: 2014-2025 Fredrik Ahlberg, Angus Gratton,
# Espressif Systems (Shanghai) CO LTD, other contributors as noted.
#
# SPDX-License-Identifier: GPL-2.0-or-later

"""
On-flash UBI headers.

Every physical eraseblock starts with an erase counter (EC) header and
carries a volume identifier (VID) header at the VID header offset. Both are
64 bytes, big-endian, and end with a CRC-32 of all preceding header bytes.
UBI skips the final inversion of the standard CRC-32, so crc32() here returns
the bitwise complement of zlib.crc32() for the same data.
"""

import struct
import zlib
from dataclasses import dataclass, field
from enum import IntEnum

from .util import HeaderError

UBI_VERSION = 1

# Seed used by the UBI layer for all its CRC-32 checksums
UBI_CRC32_INIT = 0xFFFFFFFF

UBI_EC_HDR_MAGIC = 0x55424923  # "UBI#"
UBI_VID_HDR_MAGIC = 0x55424921  # "UBI!"

# Largest erase counter the kernel accepts in an EC header
UBI_MAX_ERASECOUNTER = 0x7FFFFFFF


class VolumeType(IntEnum):
    DYNAMIC = 1
    STATIC = 2

    @classmethod
    def from_name(cls, name):
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown volume type '{name}'") from None


def crc32(data, crc=UBI_CRC32_INIT):
    """
    CRC-32 (reflected polynomial 0xEDB88320) the way UBI computes it:
    seeded with 0xFFFFFFFF and without the final inversion zlib applies.
    Chaining works by passing the previous result as crc.
    """
    # zlib inverts on the way in and out, undo both
    return zlib.crc32(data, crc ^ 0xFFFFFFFF) ^ 0xFFFFFFFF


def _check_header(name, fmt, magic, data):
    size = struct.calcsize(fmt)
    if len(data) < size:
        raise HeaderError(f"{name} header too short: {len(data)} bytes, need {size}.")
    data = bytes(data[:size])
    fields = struct.unpack(fmt, data)
    if fields[0] != magic:
        raise HeaderError(
            f"Bad {name} header magic {fields[0]:#010x}, expected {magic:#010x}."
        )
    calc_crc = crc32(data[:-4])
    if fields[-1] != calc_crc:
        raise HeaderError(
            f"Bad {name} header CRC {fields[-1]:#010x}, calculated {calc_crc:#010x}."
        )
    return fields


@dataclass(frozen=True)
class ECHeader:
    """Erase counter header, first structure of every eraseblock"""

    FMT = ">IB3xQIII32xI"
    SIZE = 64

    ec: int
    vid_hdr_offset: int
    data_offset: int
    version: int = UBI_VERSION
    image_seq: int = 0
    magic: int = field(default=UBI_EC_HDR_MAGIC, repr=False)

    def encode(self) -> bytes:
        body = struct.pack(
            self.FMT[:-1],
            self.magic,
            self.version,
            self.ec,
            self.vid_hdr_offset,
            self.data_offset,
            self.image_seq,
        )
        return body + struct.pack(">I", crc32(body))

    @classmethod
    def decode(cls, data) -> "ECHeader":
        magic, version, ec, vid_hdr_offset, data_offset, image_seq, _ = (
            _check_header("EC", cls.FMT, UBI_EC_HDR_MAGIC, data)
        )
        return cls(ec, vid_hdr_offset, data_offset, version, image_seq, magic)


@dataclass(frozen=True)
class VIDHeader:
    """
    Volume identifier header.

    data_size, used_ebs and data_crc are only meaningful for static volumes;
    data_size is the number of payload bytes in this eraseblock.
    """

    FMT = ">IBBBBII4xIIII4xQ12xI"
    SIZE = 64

    vol_type: int
    vol_id: int
    lnum: int
    sqnum: int
    version: int = UBI_VERSION
    copy_flag: int = 0
    compat: int = 0
    data_size: int = 0
    used_ebs: int = 0
    data_pad: int = 0
    data_crc: int = 0
    magic: int = field(default=UBI_VID_HDR_MAGIC, repr=False)

    def encode(self) -> bytes:
        body = struct.pack(
            self.FMT[:-1],
            self.magic,
            self.version,
            self.vol_type,
            self.copy_flag,
            self.compat,
            self.vol_id,
            self.lnum,
            self.data_size,
            self.used_ebs,
            self.data_pad,
            self.data_crc,
            self.sqnum,
        )
        return body + struct.pack(">I", crc32(body))

    @classmethod
    def decode(cls, data) -> "VIDHeader":
        (
            magic,
            version,
            vol_type,
            copy_flag,
            compat,
            vol_id,
            lnum,
            data_size,
            used_ebs,
            data_pad,
            data_crc,
            sqnum,
            _,
        ) = _check_header("VID", cls.FMT, UBI_VID_HDR_MAGIC, data)
        return cls(
            vol_type,
            vol_id,
            lnum,
            sqnum,
            version=version,
            copy_flag=copy_flag,
            compat=compat,
            data_size=data_size,
            used_ebs=used_ebs,
            data_pad=data_pad,
            data_crc=data_crc,
            magic=magic,
        )


EC_HDR_SIZE = ECHeader.SIZE
VID_HDR_SIZE = VIDHeader.SIZE


def encode_ec_header(**fields) -> bytes:
    """Serialize an EC header, see ECHeader for the field names"""
    return ECHeader(**fields).encode()


def encode_vid_header(**fields) -> bytes:
    """Serialize a VID header, see VIDHeader for the field names"""
    return VIDHeader(**fields).encode()


def decode_ec_header(data) -> ECHeader:
    return ECHeader.decode(data)


def decode_vid_header(data) -> VIDHeader:
    return VIDHeader.decode(data)
