# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Most commonly used functions shared across all modules.
"""

import re

NONALPHANUM = re.compile(r"([^a-zA-Z\d]+)")


def define_logical_name(name: str, suffix: str = "") -> str:
    """
    Returns a CFN compatible logical name ([a-zA-Z0-9]) for the given name

    :param str name:
    :param str suffix: appended after the cleaned up name
    :rtype: str
    """
    cleaned = "".join(
        part.title() for part in NONALPHANUM.split(name) if not NONALPHANUM.match(part)
    )
    if not cleaned:
        raise ValueError(f"Cannot define a logical name from {name}")
    return f"{cleaned}{suffix}"
