# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Helpers around troposphere.Template
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere import AWSObject

from troposphere import Output, Template

from vmapp.common.logging import LOG


def build_template(description: str = None) -> Template:
    """
    Function to build a default template

    :param str description: Template description
    :rtype: troposphere.Template
    """
    template = Template(description if description else "Template generated by vmapp")
    template.set_version()
    template.set_metadata({"Type": "VMApp"})
    return template


def add_resource(template: Template, resource: AWSObject, replace: bool = False):
    """
    Function to add a resource to the template if it does not exist yet.

    :param troposphere.Template template:
    :param resource:
    :param bool replace: Overrides the existing resource of the same title
    """
    if resource.title not in template.resources:
        template.add_resource(resource)
    elif replace:
        template.resources[resource.title] = resource
    else:
        raise KeyError(f"{resource.title} is already defined in the template")
    return resource


def add_outputs(template: Template, outputs: list[Output]) -> None:
    """
    Adds outputs to the template, skipping these already defined.

    :param troposphere.Template template:
    :param list[troposphere.Output] outputs:
    """
    for output in outputs:
        if output.title in template.outputs:
            LOG.debug(f"Output {output.title} already in template. Skipping")
            continue
        template.add_output(output)
