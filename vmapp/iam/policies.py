# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
IAM Role and Instance Profile of the hosts.

The permissions are the strict minimum for the enabled features: the hosts can always
manage EC2, access the table only if the table is enabled, and connect to the database
only if the database is enabled.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from os import path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from troposphere import Ref
from troposphere.iam import InstanceProfile, Policy, Role

from vmapp.common import define_logical_name
from vmapp.common.logging import LOG
from vmapp.iam import service_role_trust_policy

POLICIES_DIR = path.join(path.abspath(path.dirname(__file__)), "policy_templates")

COMPUTE_POLICY = "compute"
TABLE_POLICY = "table"
DATABASE_POLICY = "database"

POLICIES_NAMES = {
    COMPUTE_POLICY: "ComputeManagement",
    TABLE_POLICY: "TableAccess",
    DATABASE_POLICY: "DatabaseConnect",
}


@dataclass(frozen=True)
class PolicySet:
    compute: Policy
    table: Optional[Policy] = None
    database: Optional[Policy] = None

    @property
    def policies(self) -> list:
        return [
            policy
            for policy in (self.compute, self.table, self.database)
            if policy is not None
        ]


@dataclass(frozen=True)
class HostsIam:
    role: Role
    instance_profile: InstanceProfile
    policy_set: PolicySet


def render_policy_document(policy: str, name: str, region: str) -> dict:
    """
    Renders the policy template with the application name and region

    :param str policy: name of the policy template, i.e. compute
    :param str name:
    :param str region:
    :return: the policy document
    :rtype: dict
    """
    jinja_env = Environment(
        loader=FileSystemLoader(POLICIES_DIR),
        autoescape=False,
        auto_reload=False,
        undefined=StrictUndefined,
    )
    template = jinja_env.get_template(f"{policy}.json.j2")
    return json.loads(template.render(name=name, region=region))


def define_policy(policy: str, name: str, region: str) -> Policy:
    return Policy(
        PolicyName=f"{name}-{POLICIES_NAMES[policy]}",
        PolicyDocument=render_policy_document(policy, name, region),
    )


def compose_policies(
    name: str, region: str, db_enabled: bool, table_enabled: bool
) -> PolicySet:
    """
    Defines the policies for the enabled features

    :param str name:
    :param str region:
    :param bool db_enabled:
    :param bool table_enabled:
    :rtype: PolicySet
    """
    table_policy = None
    database_policy = None
    if table_enabled:
        table_policy = define_policy(TABLE_POLICY, name, region)
    else:
        LOG.debug(f"{name} - Table not enabled. No table access policy")
    if db_enabled:
        database_policy = define_policy(DATABASE_POLICY, name, region)
    else:
        LOG.debug(f"{name} - Database not enabled. No database connect policy")
    return PolicySet(
        compute=define_policy(COMPUTE_POLICY, name, region),
        table=table_policy,
        database=database_policy,
    )


def create_hosts_iam(
    name: str, region: str, db_enabled: bool, table_enabled: bool
) -> HostsIam:
    """
    Creates the IAM Role, with the policies, and the Instance Profile for the hosts

    :param str name:
    :param str region:
    :param bool db_enabled:
    :param bool table_enabled:
    :rtype: HostsIam
    """
    policy_set = compose_policies(name, region, db_enabled, table_enabled)
    role = Role(
        define_logical_name(name, "HostsRole"),
        AssumeRolePolicyDocument=service_role_trust_policy("ec2"),
        Policies=policy_set.policies,
    )
    instance_profile = InstanceProfile(
        define_logical_name(name, "HostsInstanceProfile"),
        Roles=[Ref(role)],
    )
    return HostsIam(role=role, instance_profile=instance_profile, policy_set=policy_set)
