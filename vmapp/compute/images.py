# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Base images for the hosts, per region.
"""

from vmapp.exceptions import UnsupportedRegion

REGIONS_IMAGES = {
    "us-east-1": "ami-a60c23b0",
    "us-east-2": "ami-8b92b4ee",
    "us-west-1": "ami-e0ba5c83",
    "us-west-2": "ami-6df1e514",
}
SUPPORTED_REGIONS = tuple(REGIONS_IMAGES.keys())


def get_region_image(region: str) -> str:
    """
    Returns the base image ID for the given region

    :param str region:
    :rtype: str
    :raises: UnsupportedRegion
    """
    if region not in REGIONS_IMAGES:
        raise UnsupportedRegion(region, SUPPORTED_REGIONS)
    return REGIONS_IMAGES[region]
