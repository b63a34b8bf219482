# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Resolves the VmAppConfiguration into a ResolvedConfiguration where every setting is set.

Defaults are resolved in a fixed order, each step only reading the settings resolved
by the steps before it::

    subnets -> vpc -> region -> image_id -> instance classes & storage
    name -> key_name, db_name, db_master_username
    db_master_password, user_data, security groups, flags, table capacity, tags

The feature flags (db_enabled, table_enabled) are resolved here once, and every
other module reads them from the ResolvedConfiguration only.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from types import MappingProxyType

from vmapp.common import NONALPHANUM
from vmapp.common.logging import LOG
from vmapp.compute.images import get_region_image
from vmapp.config import VmAppConfiguration
from vmapp.exceptions import InvalidCombination, MissingDependency
from vmapp.vpc import Vpc

DEFAULT_INSTANCE_TYPE = "t2.micro"
DEFAULT_DB_ENGINE = "mysql"
DEFAULT_DB_ENGINE_VERSION = "5.7"
DEFAULT_DB_INSTANCE_CLASS = "db.t2.micro"
DEFAULT_DB_STORAGE_TYPE = "gp2"
DEFAULT_DB_ALLOCATED_STORAGE = 10
DEFAULT_DB_USERNAME = "root"
DB_PASSWORD_SECRET_KEY = "/rds/password"
DEFAULT_TABLE_READ_CAPACITY = 10
DEFAULT_TABLE_WRITE_CAPACITY = 10


def secret_reference(secret_key: str) -> str:
    """
    Returns the CFN dynamic reference to the SSM SecureString parameter, resolved by
    CloudFormation at deployment time.
    """
    return f"{{{{resolve:ssm-secure:{secret_key}}}}}"


@dataclass(frozen=True)
class ResolvedConfiguration:
    name: str
    subnets: tuple
    vpc: Vpc
    region: str
    image_id: str
    instance_type: str
    db_instance_class: str
    db_storage_type: str
    db_engine: str
    db_engine_version: str
    db_allocated_storage: int
    db_multi_az: bool
    key_name: str
    db_name: str
    db_master_username: str
    db_master_password: str
    user_data: str
    management_security_groups: tuple
    db_enabled: bool
    table_enabled: bool
    table_read_capacity: int
    table_write_capacity: int
    tags: MappingProxyType

    @property
    def subnet_ids(self) -> list:
        return [subnet.subnet_id for subnet in self.subnets]


def _user_or_default(config: VmAppConfiguration, key: str, default):
    value = getattr(config, key)
    if value is None:
        LOG.debug(f"{config.name} - {key} not set. Using default {default}")
        return default
    return value


def resolve_subnets(config: VmAppConfiguration, resolved: dict) -> dict:
    if not config.subnets:
        raise MissingDependency(
            "subnets", f"{config.name} - At least one subnet is required to define the VPC"
        )
    return {"subnets": tuple(config.subnets)}


def resolve_vpc(config: VmAppConfiguration, resolved: dict) -> dict:
    if config.vpc is not None:
        return {"vpc": config.vpc}
    vpc = resolved["subnets"][0].vpc
    LOG.debug(f"{config.name} - Using VPC {vpc.vpc_id} from the first subnet")
    return {"vpc": vpc}


def resolve_region(config: VmAppConfiguration, resolved: dict) -> dict:
    if config.region is not None:
        return {"region": config.region}
    if not resolved["vpc"].region:
        raise MissingDependency(
            "region", f"{config.name} - VPC {resolved['vpc'].vpc_id} has no region"
        )
    return {"region": resolved["vpc"].region}


def resolve_image(config: VmAppConfiguration, resolved: dict) -> dict:
    if config.image_id is not None:
        return {"image_id": config.image_id}
    return {"image_id": get_region_image(resolved["region"])}


def resolve_instance_settings(config: VmAppConfiguration, resolved: dict) -> dict:
    return {
        "instance_type": _user_or_default(
            config, "instance_type", DEFAULT_INSTANCE_TYPE
        ),
        "db_instance_class": _user_or_default(
            config, "db_instance_class", DEFAULT_DB_INSTANCE_CLASS
        ),
        "db_storage_type": _user_or_default(
            config, "db_storage_type", DEFAULT_DB_STORAGE_TYPE
        ),
        "db_engine": _user_or_default(config, "db_engine", DEFAULT_DB_ENGINE),
        "db_engine_version": _user_or_default(
            config, "db_engine_version", DEFAULT_DB_ENGINE_VERSION
        ),
        "db_allocated_storage": _user_or_default(
            config, "db_allocated_storage", DEFAULT_DB_ALLOCATED_STORAGE
        ),
        "db_multi_az": _user_or_default(config, "db_multi_az", False),
    }


def resolve_named_settings(config: VmAppConfiguration, resolved: dict) -> dict:
    return {
        "name": config.name,
        "key_name": _user_or_default(config, "key_name", config.name),
        "db_name": _user_or_default(
            config, "db_name", NONALPHANUM.sub("", config.name)
        ),
        "db_master_username": _user_or_default(
            config, "db_master_username", DEFAULT_DB_USERNAME
        ),
    }


def resolve_credentials(config: VmAppConfiguration, resolved: dict) -> dict:
    return {
        "db_master_password": _user_or_default(
            config, "db_master_password", secret_reference(DB_PASSWORD_SECRET_KEY)
        )
    }


def resolve_features(config: VmAppConfiguration, resolved: dict) -> dict:
    return {
        "db_enabled": bool(config.db_enabled),
        "table_enabled": bool(config.table_enabled),
        "table_read_capacity": _user_or_default(
            config, "table_read_capacity", DEFAULT_TABLE_READ_CAPACITY
        ),
        "table_write_capacity": _user_or_default(
            config, "table_write_capacity", DEFAULT_TABLE_WRITE_CAPACITY
        ),
    }


def resolve_extras(config: VmAppConfiguration, resolved: dict) -> dict:
    return {
        "user_data": _user_or_default(config, "user_data", ""),
        "management_security_groups": tuple(
            _user_or_default(config, "management_security_groups", ())
        ),
        "tags": MappingProxyType(dict(_user_or_default(config, "tags", {}))),
    }


RESOLUTION_ORDER = (
    resolve_subnets,
    resolve_vpc,
    resolve_region,
    resolve_image,
    resolve_instance_settings,
    resolve_named_settings,
    resolve_credentials,
    resolve_features,
    resolve_extras,
)


def resolve_configuration(
    config: VmAppConfiguration, resolution_order: tuple = None
) -> ResolvedConfiguration:
    """
    Runs the resolution steps in order. Each step gets a read-only view of the settings
    already resolved and returns the new ones.

    :param VmAppConfiguration config:
    :param tuple resolution_order: override the resolution steps
    :rtype: ResolvedConfiguration
    :raises: MissingDependency, UnsupportedRegion, InvalidCombination
    """
    if resolution_order is None:
        resolution_order = RESOLUTION_ORDER
    resolved = {}
    for step in resolution_order:
        try:
            new_settings = step(config, MappingProxyType(resolved))
        except KeyError as error:
            raise MissingDependency(
                error.args[0], f"Required by {step.__name__} but not resolved yet"
            ) from error
        overlap = set(new_settings).intersection(resolved)
        if overlap:
            raise InvalidCombination(
                ", ".join(sorted(overlap)),
                f"Already resolved, re-defined by {step.__name__}",
            )
        resolved.update(new_settings)
    missing = {_field.name for _field in fields(ResolvedConfiguration)}.difference(
        resolved
    )
    if missing:
        raise MissingDependency(
            ", ".join(sorted(missing)), "Not resolved by any resolution step"
        )
    LOG.info(
        f"{config.name} - Resolved settings for {resolved['vpc'].vpc_id} "
        f"in {resolved['region']}"
    )
    return ResolvedConfiguration(**resolved)
