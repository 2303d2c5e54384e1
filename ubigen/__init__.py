# SPDX-FileCopyrightText: 2014-2025 Fredrik Ahlberg, Angus Gratton,
# Espressif Systems (Shanghai) CO LTD, other contributors as noted.
#
# SPDX-License-Identifier: GPL-2.0-or-later

__all__ = [
    "create_volume_image",
    "version",
    "ImageBuilder",
    "VolumeGeometry",
    "VolumeParams",
    "VolumeType",
]

__version__ = "1.4.0"

import sys
import rich_click as click

from ubigen.cmds import create_volume_image, version
from ubigen.headers import UBI_VERSION, VolumeType
from ubigen.image import ImageBuilder, VolumeGeometry, VolumeParams
from ubigen.logger import log
from ubigen.util import (
    ConfigurationError,
    FatalError,
)
from ubigen.cli_util import (
    AnyIntType,
    Group,
    SizeType,
    VolumeTypeChoice,
    warn_unused,
)

# Show arguments in the help output, this was default in argparse
click.rich_click.SHOW_ARGUMENTS = True
# Option group definitions, used for grouping options in the help output
click.rich_click.OPTION_GROUPS = {
    "ubigen create": [
        {
            "name": "Flash geometry",
            "options": [
                "--peb-size",
                "--min-io-size",
                "--sub-page-size",
                "--vid-hdr-offset",
            ],
        },
        {
            "name": "Volume options",
            "options": [
                "--vol-id",
                "--type",
                "--alignment",
                "--data-length",
                "--erase-counter",
                "--ubi-ver",
                "--compat",
                "--image-seq",
            ],
        },
    ],
}

############################### GLOBAL OPTIONS AND MAIN ###############################


@click.group(
    cls=Group,
    no_args_is_help=True,
    context_settings=dict(help_option_names=["-h", "--help"], max_content_width=120),
    help=f"ubigen v{__version__} - a tool for adding UBI headers to a binary image. "
    "Note, the images generated by this program are not ready to be used because "
    "they do not contain the volume table. If not sure about one of the parameters, "
    "do not specify it and let the utility use the default value.",
)
@click.option(
    "--verbosity",
    "-v",
    type=click.Choice(["auto", "verbose", "silent", "compact"]),
    default="auto",
    help="Output verbosity. 'silent' prints errors only.",
)
@click.pass_context
def cli(ctx, verbosity):
    ctx.ensure_object(dict)
    ctx.obj["verbosity"] = verbosity
    log.set_verbosity(verbosity)


@cli.command("create")
@click.option(
    "--infile",
    "-i",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="The input file.",
)
@click.option(
    "--outfile",
    "-o",
    type=str,
    default="-",
    help="The output file (default is stdout).",
)
@click.option(
    "--peb-size",
    "-b",
    type=SizeType(),
    required=True,
    help="Size of the physical eraseblock of the flash this UBI image is created "
    "for in bytes, kilobytes (KiB), or megabytes (MiB).",
)
@click.option(
    "--vol-id",
    "-I",
    type=AnyIntType(),
    required=True,
    help="Volume ID.",
)
@click.option(
    "--min-io-size",
    "-m",
    type=SizeType(),
    required=True,
    help="Minimum input/output unit size of the flash in bytes, kilobytes (KiB), "
    "or megabytes (MiB); e.g. this is NAND page size in case of NAND flash.",
)
@click.option(
    "--type",
    "-t",
    "vol_type",
    type=VolumeTypeChoice(),
    default="dynamic",
    help="Volume type.",
)
@click.option(
    "--sub-page-size",
    "-s",
    type=SizeType(),
    default=None,
    help="Minimum input/output unit used for UBI headers, e.g. sub-page size in "
    "case of NAND flash (equivalent to the minimum input/output unit size by default).",
)
@click.option(
    "--alignment",
    "-a",
    type=SizeType(),
    default=1,
    help="Volume alignment in bytes, kilobytes (KiB), or megabytes (MiB).",
)
@click.option(
    "--vid-hdr-offset",
    "-O",
    type=AnyIntType(),
    default=0,
    help="Offset of the VID header from start of the physical eraseblock "
    "(default is the second sub-page).",
)
@click.option(
    "--erase-counter",
    "-e",
    type=AnyIntType(),
    default=0,
    help="The erase counter value to put to EC headers.",
)
@click.option(
    "--ubi-ver",
    "-x",
    "ubi_version",
    type=AnyIntType(),
    default=UBI_VERSION,
    help="UBI version number to put to EC and VID headers.",
)
@click.option(
    "--compat",
    type=AnyIntType(),
    default=0,
    help="Compatibility flag to put to VID headers.",
)
@click.option(
    "--image-seq",
    type=AnyIntType(),
    default=0,
    help="Image sequence number to put to EC headers.",
)
@click.option(
    "--data-length",
    type=SizeType(),
    default=None,
    help="Data length of a static volume (default is the input file size).",
)
@click.option("--no-progress", "-p", is_flag=True, help="Suppress progress output.")
def create_cli(infile, outfile, vol_type, no_progress, **kwargs):
    """Add UBI headers to a binary image, creating one volume."""
    if vol_type == "dynamic" and kwargs["data_length"] is not None:
        warn_unused("--data-length", "it applies to static volumes only")
        kwargs["data_length"] = None
    create_volume_image(
        infile,
        outfile,
        vol_type=vol_type,
        show_progress=not no_progress,
        **kwargs,
    )


@cli.command("version")
def version_cli():
    """Print ubigen version."""
    version()


def main(argv: list[str] | None = None):
    """
    Main function for ubigen

    argv - Optional override for default arguments parsing (that uses sys.argv),
    can be a list of custom arguments as strings. Arguments and their values
    need to be added as individual items to the list
    e.g. "-b 128KiB" thus becomes ['-b', '128KiB'].
    """
    cli(args=argv or sys.argv[1:])


def _main():
    try:
        main()
    except ConfigurationError as e:
        log.error(f"\nInvalid volume parameters: {e}")
        sys.exit(1)
    except FatalError as e:
        log.error(f"\nA fatal error occurred: {e}")
        sys.exit(2)
    except KeyboardInterrupt:
        log.error("KeyboardInterrupt: Run cancelled by user.")
        sys.exit(2)


if __name__ == "__main__":
    _main()
