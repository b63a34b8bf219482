# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the VmAppConfiguration class, the input of the VM App composition, and its
loading from a YAML/JSON configuration file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from os import path
from types import MappingProxyType
from typing import Optional

import jsonschema
import yaml
from boto3.session import Session
from compose_x_common.compose_x_common import keyisset, set_else_none

from vmapp.common.logging import LOG
from vmapp.exceptions import ConfigurationError
from vmapp.specs import load_spec
from vmapp.vpc import Subnet, Vpc
from vmapp.vpc.vpc_aws import lookup_subnets

ROOT_KEY = "x-vmapp"
NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9-]*$")
DATABASE_KEY = "Database"
TABLE_KEY = "Table"


@dataclass(frozen=True)
class VmAppConfiguration:
    """
    The VM App settings as given by the user. Only name and subnets are mandatory,
    every other setting left to None is resolved by vmapp.resolver.
    """

    name: str
    subnets: tuple
    vpc: Optional[Vpc] = None
    region: Optional[str] = None
    key_name: Optional[str] = None
    image_id: Optional[str] = None
    user_data: Optional[str] = None
    instance_type: Optional[str] = None
    management_security_groups: Optional[tuple] = None
    db_enabled: Optional[bool] = None
    db_engine: Optional[str] = None
    db_engine_version: Optional[str] = None
    db_instance_class: Optional[str] = None
    db_storage_type: Optional[str] = None
    db_allocated_storage: Optional[int] = None
    db_multi_az: Optional[bool] = None
    db_name: Optional[str] = None
    db_master_username: Optional[str] = None
    db_master_password: Optional[str] = None
    table_enabled: Optional[bool] = None
    table_read_capacity: Optional[int] = None
    table_write_capacity: Optional[int] = None
    tags: Optional[MappingProxyType] = field(default=None)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError("Name", "must be a non-empty string")
        if not NAME_PATTERN.match(self.name):
            raise ConfigurationError(
                "Name",
                f"{self.name} must start with a letter and only contain letters, "
                "digits and -",
            )
        object.__setattr__(self, "subnets", tuple(self.subnets or ()))
        for subnet in self.subnets:
            if not isinstance(subnet, Subnet):
                raise TypeError("subnets must be of type", Subnet, "got", type(subnet))
        if self.management_security_groups is not None:
            object.__setattr__(
                self,
                "management_security_groups",
                tuple(self.management_security_groups),
            )
        if self.tags is not None:
            object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))


def import_subnets(subnets_definition: list, session: Session = None) -> tuple:
    """
    Turns the Subnets of the configuration file into Subnet objects.
    Subnets given only by their ID are looked up in the AWS account.

    :param list subnets_definition:
    :param boto3.session.Session session:
    :rtype: tuple[Subnet]
    """
    to_lookup = [
        subnet_def for subnet_def in subnets_definition if isinstance(subnet_def, str)
    ]
    looked_up = {}
    if to_lookup:
        LOG.info(f"Looking up subnets {', '.join(to_lookup)}")
        looked_up = {
            subnet.subnet_id: subnet for subnet in lookup_subnets(to_lookup, session)
        }
    subnets = []
    for subnet_def in subnets_definition:
        if isinstance(subnet_def, str):
            subnets.append(looked_up[subnet_def])
        else:
            subnets.append(
                Subnet(
                    subnet_def["SubnetId"],
                    Vpc(subnet_def["VpcId"], subnet_def["Region"]),
                )
            )
    return tuple(subnets)


def validate_definition(definition: dict, source: str = "<content>") -> None:
    """
    Validates the configuration content against the vmapp JSON schema

    :raises: ConfigurationError
    """
    try:
        jsonschema.validate(definition, load_spec())
    except jsonschema.exceptions.ValidationError as error:
        location = ".".join(str(part) for part in error.absolute_path)
        raise ConfigurationError(
            f"{source}:{location}" if location else source, error.message
        ) from error


def configuration_from_dict(
    definition: dict, session: Session = None, source: str = "<content>"
) -> VmAppConfiguration:
    """
    Creates the VmAppConfiguration from the content of a configuration file

    :param dict definition:
    :param boto3.session.Session session: used to look up subnets given by ID only
    :param str source: where the content comes from, for error messages
    :rtype: VmAppConfiguration
    """
    if keyisset(ROOT_KEY, definition):
        definition = definition[ROOT_KEY]
    validate_definition(definition, source)
    database = set_else_none(DATABASE_KEY, definition, alt_value={})
    table = set_else_none(TABLE_KEY, definition, alt_value={})
    vpc = None
    if keyisset("Vpc", definition):
        vpc = Vpc(definition["Vpc"]["VpcId"], definition["Vpc"]["Region"])
    return VmAppConfiguration(
        name=definition["Name"],
        subnets=import_subnets(definition["Subnets"], session),
        vpc=vpc,
        region=set_else_none("Region", definition),
        key_name=set_else_none("KeyName", definition),
        image_id=set_else_none("ImageId", definition),
        user_data=set_else_none("UserData", definition),
        instance_type=set_else_none("InstanceType", definition),
        management_security_groups=set_else_none(
            "ManagementSecurityGroups", definition
        ),
        db_enabled=set_else_none("Enabled", database, eval_bool=True),
        db_engine=set_else_none("Engine", database),
        db_engine_version=set_else_none("EngineVersion", database),
        db_instance_class=set_else_none("InstanceClass", database),
        db_storage_type=set_else_none("StorageType", database),
        db_allocated_storage=set_else_none("AllocatedStorage", database),
        db_multi_az=set_else_none("MultiAZ", database, eval_bool=True),
        db_name=set_else_none("DBName", database),
        db_master_username=set_else_none("MasterUsername", database),
        db_master_password=set_else_none("MasterUserPassword", database),
        table_enabled=set_else_none("Enabled", table, eval_bool=True),
        table_read_capacity=set_else_none("ReadCapacityUnits", table),
        table_write_capacity=set_else_none("WriteCapacityUnits", table),
        tags=set_else_none("Tags", definition),
    )


def load_configuration(file_path: str, session: Session = None) -> VmAppConfiguration:
    """
    Loads the configuration file (YAML or JSON) and returns the VmAppConfiguration

    :param str file_path:
    :param boto3.session.Session session:
    :rtype: VmAppConfiguration
    :raises: ConfigurationError
    """
    file_path = path.abspath(file_path)
    LOG.info(f"Loading configuration from {file_path}")
    try:
        with open(file_path) as config_fd:
            content = yaml.safe_load(config_fd.read())
    except OSError as error:
        raise ConfigurationError(file_path, str(error)) from error
    except yaml.YAMLError as error:
        raise ConfigurationError(file_path, f"Invalid YAML/JSON - {error}") from error
    if not isinstance(content, dict):
        raise ConfigurationError(file_path, "Configuration must be a mapping")
    return configuration_from_dict(content, session, source=file_path)
