# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Generic tags added to all the resources of a VM App that support AWS Tags from CFN.

The caller's tags are added on top of the generated ones and take precedence,
except for the ``Name`` tag that always identifies the resource role within the app.
"""

from __future__ import annotations

from troposphere import Tags
from troposphere.autoscaling import Tags as AsgTags
from troposphere.ec2 import TagSpecifications

TAGS_SEPARATOR = "::"
APP_NAME_TAG = f"vmapp{TAGS_SEPARATOR}name"
APP_ROLE_TAG = f"vmapp{TAGS_SEPARATOR}role"


def app_tags(name: str, role: str, extra_tags: dict = None) -> dict:
    """
    Returns the tags for a resource of the application

    :param str name: the application name
    :param str role: the role of the resource in the application, i.e. elb-sg
    :param dict extra_tags: the tags given by the user
    :rtype: dict
    """
    tags = {APP_NAME_TAG: name, APP_ROLE_TAG: role}
    if extra_tags:
        tags.update({str(key): str(value) for key, value in extra_tags.items()})
    tags["Name"] = f"{name}-{role}"
    return tags


def define_tags(name: str, role: str, extra_tags: dict = None) -> Tags:
    return Tags(**app_tags(name, role, extra_tags))


def define_asg_tags(name: str, role: str, extra_tags: dict = None) -> AsgTags:
    """AutoScaling group tags, propagated at launch to the instances"""
    return AsgTags(**app_tags(name, role, extra_tags))


def define_tag_specifications(
    name: str, role: str, resource_types: list, extra_tags: dict = None
) -> list:
    """
    Tags propagated by the launch template to the resources it creates

    :param str name:
    :param str role:
    :param list[str] resource_types: i.e. instance, volume
    :param dict extra_tags:
    :rtype: list[troposphere.ec2.TagSpecifications]
    """
    return [
        TagSpecifications(
            ResourceType=resource_type,
            Tags=define_tags(name, role, extra_tags),
        )
        for resource_type in resource_types
    ]
