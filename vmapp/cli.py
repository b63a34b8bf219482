# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Console script for vmapp.
"""

import argparse
import sys
from dataclasses import replace
from os import makedirs, path

from boto3.session import Session

from vmapp import __version__
from vmapp.common.logging import LOG, set_debug
from vmapp.config import load_configuration
from vmapp.exceptions import VmAppException
from vmapp.vmapp import generate_vmapp

RENDER_CMD = "render"
VERSION_CMD = "version"
ALLOWED_FORMATS = ["json", "yaml"]
DEFAULT_FORMAT = "json"
DEFAULT_OUTPUT_DIR = "outputs"


def main_parser():
    """
    Console script for vmapp.
    """
    parser = argparse.ArgumentParser(
        description="Renders a VM App (ELB, AutoScaling hosts, RDS, DynamoDB) CFN template"
    )
    cmd_parsers = parser.add_subparsers(dest="command", help="Command to execute.")
    render_parser = cmd_parsers.add_parser(
        RENDER_CMD, help="Resolves the configuration and renders the CFN template locally"
    )
    render_parser.add_argument(
        "-f",
        "--config-file",
        dest="ConfigFile",
        required=True,
        help="Path to the VM App configuration file (YAML or JSON)",
    )
    render_parser.add_argument(
        "-n",
        "--name",
        dest="Name",
        required=False,
        help="Override the name of the VM App",
    )
    render_parser.add_argument(
        "--region",
        dest="RegionName",
        required=False,
        help="Region to build for. Also used to look up subnets given by ID",
    )
    render_parser.add_argument(
        "--profile",
        dest="ProfileName",
        required=False,
        help="AWS profile to use to look up subnets given by ID",
    )
    render_parser.add_argument(
        "-d",
        "--output-dir",
        dest="OutputDirectory",
        default=DEFAULT_OUTPUT_DIR,
        help="Output directory to write the template to.",
    )
    render_parser.add_argument(
        "--format",
        dest="TemplateFormat",
        choices=ALLOWED_FORMATS,
        default=DEFAULT_FORMAT,
        help="Defines the format you want to use.",
    )
    render_parser.add_argument(
        "--debug",
        dest="Debug",
        action="store_true",
        help="Enable debug logging",
    )
    cmd_parsers.add_parser(VERSION_CMD, help="VM App version")
    return parser


def write_template(template, name: str, output_dir: str, file_format: str) -> str:
    """
    Writes the template to <output_dir>/<name>.<format>

    :return: the path to the file
    :rtype: str
    """
    makedirs(output_dir, exist_ok=True)
    file_path = path.abspath(path.join(output_dir, f"{name}.{file_format}"))
    body = template.to_yaml() if file_format == "yaml" else template.to_json()
    with open(file_path, "w") as template_fd:
        template_fd.write(body)
    LOG.info(f"Template for {name} written to {file_path}")
    return file_path


def render(args: dict) -> str:
    if args.get("Debug"):
        set_debug()
    session = None
    if args.get("ProfileName") or args.get("RegionName"):
        session = Session(
            profile_name=args.get("ProfileName"), region_name=args.get("RegionName")
        )
    config = load_configuration(args["ConfigFile"], session)
    overrides = {}
    if args.get("Name"):
        overrides["name"] = args["Name"]
    if args.get("RegionName"):
        overrides["region"] = args["RegionName"]
    if overrides:
        config = replace(config, **overrides)
    vmapp = generate_vmapp(config)
    return write_template(
        vmapp.to_template(),
        vmapp.settings.name,
        args["OutputDirectory"],
        args["TemplateFormat"],
    )


def main(argv=None):
    """Console script for vmapp."""
    parser = main_parser()
    args = parser.parse_args(argv)
    if args.command == VERSION_CMD:
        print(__version__)
        return 0
    if args.command != RENDER_CMD:
        parser.print_help()
        return 1
    try:
        render(vars(args))
    except VmAppException as error:
        LOG.error(error)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
