# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
RDS DB template generator
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vmapp.network.security_groups import SecurityGroupSet
    from vmapp.resolver import ResolvedConfiguration

from troposphere import GetAtt, Ref
from troposphere.rds import DBInstance, DBSubnetGroup

from vmapp.common import define_logical_name
from vmapp.common.logging import LOG
from vmapp.common.tagging import define_tags
from vmapp.exceptions import InvalidCombination


def db_instance_identifier(name: str) -> str:
    return f"{name}-dbInstance"


def create_db_subnet_group(settings: ResolvedConfiguration) -> DBSubnetGroup:
    """
    Create the DB Subnet Group
    """
    return DBSubnetGroup(
        define_logical_name(settings.name, "DbSubnetGroup"),
        DBSubnetGroupDescription=f"DB Subnet group for {settings.name}",
        SubnetIds=settings.subnet_ids,
        Tags=define_tags(settings.name, "db-subnet-group", settings.tags),
    )


def create_db_instance(
    settings: ResolvedConfiguration,
    security_groups: SecurityGroupSet,
    subnet_group: DBSubnetGroup,
) -> DBInstance:
    """
    Creates the DB Instance in the DB subnet group, with the database security group

    :param ResolvedConfiguration settings:
    :param SecurityGroupSet security_groups:
    :param troposphere.rds.DBSubnetGroup subnet_group:
    :rtype: troposphere.rds.DBInstance
    :raises: InvalidCombination if the database is not enabled
    """
    if not settings.db_enabled:
        raise InvalidCombination(
            "database", f"{settings.name} - Database is not enabled"
        )
    db_sg = security_groups.require_database_group()
    LOG.info(
        f"{settings.name} - DB Instance {settings.db_engine} {settings.db_engine_version}"
        f" on {settings.db_instance_class}"
    )
    return DBInstance(
        define_logical_name(settings.name, "DbInstance"),
        DBInstanceIdentifier=db_instance_identifier(settings.name),
        Engine=settings.db_engine,
        EngineVersion=settings.db_engine_version,
        DBInstanceClass=settings.db_instance_class,
        StorageType=settings.db_storage_type,
        AllocatedStorage=settings.db_allocated_storage,
        MultiAZ=settings.db_multi_az,
        DBName=settings.db_name,
        MasterUsername=settings.db_master_username,
        MasterUserPassword=settings.db_master_password,
        DBSubnetGroupName=Ref(subnet_group),
        VPCSecurityGroups=[GetAtt(db_sg, "GroupId")],
        PubliclyAccessible=True,
        Tags=define_tags(settings.name, "db", settings.tags),
    )
