# SPDX-FileCopyrightText: 2014-2025 Fredrik Ahlberg, Angus Gratton,
# Espressif Systems (Shanghai) CO LTD, other contributors as noted.
#
# SPDX-License-Identifier: GPL-2.0-or-later

import io
import sys

from .headers import UBI_VERSION, VolumeType
from .image import ImageBuilder, VolumeGeometry, VolumeParams
from .logger import log
from .util import (
    ConfigurationError,
    FatalError,
    ImageIOError,
    ImageSource,
    get_stream_size,
)


def _open_input(input: ImageSource):
    """Return (stream, name, should_close) for a path, bytes or binary stream"""
    if isinstance(input, str):
        try:
            return open(input, "rb"), f"'{input}'", True
        except OSError as e:
            raise ImageIOError(f"open input file '{input}'", e) from e
    elif isinstance(input, (bytes, bytearray)):
        return io.BytesIO(input), "bytes", False
    elif hasattr(input, "read"):
        name = getattr(input, "name", None)
        return input, "stream" if name is None else f"'{name}'", False
    raise FatalError(f"Invalid input type {type(input)}")


def create_volume_image(
    input: ImageSource,
    output: str | None = None,
    *,
    vol_id: int,
    peb_size: int,
    min_io_size: int,
    vol_type: str | VolumeType = "dynamic",
    sub_page_size: int | None = None,
    alignment: int = 1,
    vid_hdr_offset: int = 0,
    erase_counter: int = 0,
    ubi_version: int = UBI_VERSION,
    **kwargs,
) -> bytes | None:
    """
    Add UBI headers to a binary image, creating the content of one volume.

    The result is not a complete UBI image: it has no volume table and has to be
    assembled with the other volumes before flashing.

    Args:
        input: Data of the volume. The data can be a file path (str), bytes,
            or a binary file-like object.
        output: Path to the output file where the volume image will be written.
            If None, the image will be returned as bytes. The special value "-"
            writes to stdout.
        vol_id: Volume ID.
        peb_size: Physical eraseblock size of the flash.
        min_io_size: Minimum input/output unit size of the flash.
        vol_type: ``"dynamic"``, ``"static"`` or a VolumeType member.
        sub_page_size: Minimum input/output unit used for UBI headers
            (defaults to min_io_size).
        alignment: Volume alignment.
        vid_hdr_offset: Offset of the VID header in the physical eraseblock
            (0 selects the second sub-page).
        erase_counter: Erase counter value to put to EC headers.
        ubi_version: UBI version number to put to the headers.

    Keyword Args:
        compat (int): Compatibility flag of the VID headers.
        image_seq (int): Image sequence number of the EC headers.
        data_length (int | None): Data length of a static volume, by default
            the size of the input.
        show_progress (bool): If True, print a progress bar when the input
            size is known.

    Returns:
        The volume image as bytes if output is None; otherwise,
        returns None after writing to file.
    """

    # Set default values of optional arguments
    compat: int = kwargs.get("compat", 0)
    image_seq: int = kwargs.get("image_seq", 0)
    data_length: int | None = kwargs.get("data_length", None)
    show_progress: bool = kwargs.get("show_progress", False)

    try:
        if isinstance(vol_type, VolumeType):
            volume_type = vol_type
        else:
            volume_type = VolumeType.from_name(vol_type)
    except (AttributeError, ValueError):
        raise ConfigurationError(
            f"Invalid volume type: '{vol_type}', choose from 'dynamic', 'static'."
        )

    geometry = VolumeGeometry(
        peb_size=peb_size,
        min_io_size=min_io_size,
        sub_page_size=sub_page_size,
        vid_hdr_offset=vid_hdr_offset,
        alignment=alignment,
    )

    infile, source, close_input = _open_input(input)
    try:
        input_size = get_stream_size(infile)
        if volume_type == VolumeType.STATIC and data_length is None:
            if input_size is None:
                raise ConfigurationError(
                    f"Cannot determine the size of input {source}, "
                    "specify the data length of the static volume."
                )
            data_length = input_size

        params = VolumeParams(
            vol_id=vol_id,
            vol_type=volume_type,
            erase_counter=erase_counter,
            ubi_format_version=ubi_version,
            declared_data_length=data_length,
            compat=compat,
            image_seq=image_seq,
        )
        total = data_length if volume_type == VolumeType.STATIC else input_size

        def progress(written, _):
            log.progress_bar(written, total, prefix="Writing ")

        log.print(
            f"Creating {volume_type.name.lower()} volume {vol_id} from {source}: "
            f"PEB size {geometry.peb_size:#x}, LEB size {geometry.leb_size:#x}, "
            f"VID header offset {geometry.vid_hdr_offset:#x}, "
            f"data offset {geometry.data_offset:#x}"
        )
        if output is None:
            of = io.BytesIO()
        elif output == "-":
            of = sys.stdout.buffer
        else:
            try:
                of = open(output, "wb")
            except OSError as e:
                raise ImageIOError(f"open output file '{output}'", e) from e
        try:
            builder = ImageBuilder(
                geometry,
                params,
                infile,
                of,
                progress=progress if show_progress and total else None,
            )
            blocks = builder.write_volume()
            size = blocks * geometry.peb_size
        finally:
            if output not in (None, "-"):
                of.close()
    finally:
        if close_input:
            infile.close()

    if output is None and isinstance(of, io.BytesIO):
        log.print(
            f"Created {blocks} eraseblocks ({size:#x} bytes) "
            f"holding {builder.bytes_written:#x} bytes of data."
        )
        return of.getvalue()
    log.print(
        f"Wrote {blocks} eraseblocks ({size:#x} bytes) to "
        f"{'stdout' if output == '-' else repr(output)}."
    )
    return None


def version() -> None:
    """
    Print the current ubigen version.
    """
    from . import __version__

    log.print(__version__, file=sys.stdout)
