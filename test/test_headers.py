# Tests for the UBI header codec

import struct
import zlib

from conftest import need_to_install_package_err

import pytest

try:
    from ubigen.headers import (
        EC_HDR_SIZE,
        UBI_EC_HDR_MAGIC,
        UBI_VID_HDR_MAGIC,
        VID_HDR_SIZE,
        ECHeader,
        VIDHeader,
        VolumeType,
        crc32,
        decode_ec_header,
        decode_vid_header,
        encode_ec_header,
        encode_vid_header,
    )
    from ubigen.util import HeaderError
except ImportError:
    need_to_install_package_err()


@pytest.mark.host_test
class TestCrc32:
    def test_check_value(self):
        # CRC-32 check value is 0xCBF43926, UBI skips the final inversion
        assert crc32(b"123456789") == 0x340BC6D9
        assert crc32(b"123456789") == zlib.crc32(b"123456789") ^ 0xFFFFFFFF

    def test_empty(self):
        assert crc32(b"") == 0xFFFFFFFF

    def test_chaining(self):
        data = bytes(range(256)) * 5
        assert crc32(data[700:], crc32(data[:700])) == crc32(data)


@pytest.mark.host_test
class TestECHeader:
    def test_layout(self):
        hdr = encode_ec_header(
            ec=0x1122334455, vid_hdr_offset=2048, data_offset=2112, image_seq=7
        )
        assert len(hdr) == EC_HDR_SIZE == 64
        assert hdr[:4] == b"UBI#"
        assert struct.unpack(">I", hdr[:4])[0] == UBI_EC_HDR_MAGIC
        assert hdr[4] == 1  # version
        assert hdr[5:8] == b"\x00" * 3
        assert struct.unpack(">Q", hdr[8:16])[0] == 0x1122334455
        assert struct.unpack(">III", hdr[16:28]) == (2048, 2112, 7)
        assert hdr[28:60] == b"\x00" * 32
        assert struct.unpack(">I", hdr[60:])[0] == crc32(hdr[:60])

    def test_decode(self):
        hdr = ECHeader(ec=3, vid_hdr_offset=512, data_offset=576, version=1)
        decoded = decode_ec_header(hdr.encode())
        assert decoded == hdr

    def test_version_is_stored(self):
        hdr = encode_ec_header(ec=0, vid_hdr_offset=64, data_offset=128, version=5)
        assert hdr[4] == 5
        assert decode_ec_header(hdr).version == 5

    def test_bad_crc(self):
        hdr = bytearray(encode_ec_header(ec=0, vid_hdr_offset=64, data_offset=128))
        hdr[8] ^= 0x01
        with pytest.raises(HeaderError, match="CRC"):
            decode_ec_header(hdr)

    def test_bad_magic(self):
        hdr = encode_vid_header(vol_type=VolumeType.DYNAMIC, vol_id=0, lnum=0, sqnum=0)
        with pytest.raises(HeaderError, match="magic"):
            decode_ec_header(hdr)

    def test_too_short(self):
        with pytest.raises(HeaderError, match="too short"):
            decode_ec_header(b"UBI#")

    def test_overflow_is_caller_error(self):
        with pytest.raises(struct.error):
            encode_ec_header(ec=1 << 64, vid_hdr_offset=64, data_offset=128)


@pytest.mark.host_test
class TestVIDHeader:
    def test_layout(self):
        hdr = encode_vid_header(
            vol_type=VolumeType.STATIC,
            vol_id=5,
            lnum=3,
            sqnum=0x0102030405,
            compat=4,
            data_size=1000,
            used_ebs=4,
            data_pad=12,
            data_crc=0xDEADBEEF,
        )
        assert len(hdr) == VID_HDR_SIZE == 64
        assert hdr[:4] == b"UBI!"
        assert struct.unpack(">I", hdr[:4])[0] == UBI_VID_HDR_MAGIC
        assert tuple(hdr[4:8]) == (1, 2, 0, 4)  # version, type, copy_flag, compat
        assert struct.unpack(">II", hdr[8:16]) == (5, 3)
        assert hdr[16:20] == b"\x00" * 4
        assert struct.unpack(">IIII", hdr[20:36]) == (1000, 4, 12, 0xDEADBEEF)
        assert hdr[36:40] == b"\x00" * 4
        assert struct.unpack(">Q", hdr[40:48])[0] == 0x0102030405
        assert hdr[48:60] == b"\x00" * 12
        assert struct.unpack(">I", hdr[60:])[0] == crc32(hdr[:60])

    def test_dynamic_defaults(self):
        hdr = decode_vid_header(
            encode_vid_header(vol_type=VolumeType.DYNAMIC, vol_id=1, lnum=0, sqnum=0)
        )
        assert hdr.vol_type == VolumeType.DYNAMIC
        assert hdr.copy_flag == 0
        assert hdr.data_size == hdr.data_crc == hdr.used_ebs == 0

    def test_decode(self):
        hdr = VIDHeader(
            vol_type=VolumeType.STATIC,
            vol_id=0x7FFFEFFF,
            lnum=10,
            sqnum=11,
            data_size=42,
            used_ebs=11,
            data_crc=crc32(b"payload"),
        )
        assert VIDHeader.decode(hdr.encode()) == hdr

    def test_bad_crc(self):
        hdr = bytearray(
            encode_vid_header(vol_type=VolumeType.DYNAMIC, vol_id=1, lnum=0, sqnum=0)
        )
        hdr[60] ^= 0xFF
        with pytest.raises(HeaderError, match="CRC"):
            decode_vid_header(hdr)


@pytest.mark.host_test
def test_volume_type_names():
    assert VolumeType.from_name("static") == VolumeType.STATIC == 2
    assert VolumeType.from_name("DYNAMIC") == VolumeType.DYNAMIC == 1
    with pytest.raises(ValueError):
        VolumeType.from_name("bogus")
