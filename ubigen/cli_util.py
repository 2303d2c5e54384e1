# SPDX-FileCopyrightText: 2025 Espressif Systems (Shanghai) CO LTD
#
# SPDX-License-Identifier: GPL-2.0-or-later

import re

import rich_click as click

from .config import get_defaults, load_config_file
from .logger import log
from typing import Any

SIZE_MULTIPLIERS = {
    "KiB": 1024,
    "MiB": 1024 * 1024,
    "GiB": 1024 * 1024 * 1024,
}

################################ Custom types #################################


class AnyIntType(click.ParamType):
    """Custom type to parse any integer value - decimal, hex, octal, or binary"""

    name = "integer"

    def convert(
        self, value: str, param: click.Parameter | None, ctx: click.Context | None
    ) -> int:
        if isinstance(value, int):  # default value is already an int
            return value
        try:
            return arg_auto_int(value)
        except ValueError:
            raise click.BadParameter(f"{value!r} is not a valid integer.")


class SizeType(AnyIntType):
    """Similar to AnyIntType but allows 'KiB', 'MiB' and 'GiB' suffixes"""

    name = "size"

    def convert(
        self, value: str, param: click.Parameter | None, ctx: click.Context | None
    ) -> int:
        if isinstance(value, int):
            return value
        try:
            return parse_size(value)
        except ValueError as e:
            raise click.BadParameter(str(e))


class VolumeTypeChoice(click.Choice):
    """Volume type in any case"""

    def __init__(self):
        super().__init__(["dynamic", "static"], case_sensitive=False)

    def convert(
        self, value: str, param: click.Parameter | None, ctx: click.Context | None
    ) -> Any:
        return super().convert(value, param, ctx).lower()


########################### Custom option/argument ############################


class Group(click.RichGroup):
    def invoke(self, ctx: click.Context):
        """Load the configuration file before the subcommand options are parsed"""
        cfg, _ = load_config_file(verbose=True)
        defaults = get_defaults(cfg)
        if defaults:
            ctx.default_map = {
                name: dict(defaults) for name in self.list_commands(ctx)
            }
        return super().invoke(ctx)


############################## Helper functions ###############################


def arg_auto_int(x: str) -> int:
    """Parse an integer value in any base"""
    return int(x, 0)


def parse_size(value: str) -> int:
    """
    Parse a size in bytes, optionally followed by one of the KiB, MiB or GiB
    suffixes (e.g. "128KiB", "0x20000", "2 MiB").
    """
    match = re.match(r"^\s*([0-9a-fA-FxXoObB]+?)\s*([KMG]iB)?\s*$", value)
    if match is None:
        raise ValueError(
            f"{value!r} is not a valid size, use a number optionally followed "
            "by 'KiB', 'MiB' or 'GiB'."
        )
    number, suffix = match.groups()
    try:
        size = arg_auto_int(number)
    except ValueError:
        raise ValueError(f"{value!r} is not a valid size.")
    if suffix is not None:
        size *= SIZE_MULTIPLIERS[suffix]
    return size


def warn_unused(option: str, reason: str) -> None:
    log.warning(f"Option '{option}' is ignored, {reason}.")
