# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Security groups of the VM App and their ingress rules.

The rules reference each other (the hosts accept traffic from the load balancer and
the clients, the database from the hosts and the clients), so the groups are created
first without any rule, and the ingress rules are set in a second pass, once all the
groups exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from troposphere import GetAtt
from troposphere.ec2 import SecurityGroup, SecurityGroupRule

from vmapp.common import define_logical_name
from vmapp.common.logging import LOG
from vmapp.common.tagging import define_tags
from vmapp.exceptions import InvalidCombination

ANYWHERE_IPV4 = "0.0.0.0/0"
HTTP_PORT = 80
HTTPS_PORT = 443
SSH_PORT = 22
MYSQL_PORT = 3306

ELB_SG = "elb-sg"
ASG_SG = "asg-sg"
RDS_SG = "rds-sg"
CLIENT_SG = "client-sg"

GROUPS_SUFFIXES = {
    ELB_SG: "ElbSg",
    ASG_SG: "AsgSg",
    RDS_SG: "RdsSg",
    CLIENT_SG: "ClientSg",
}

GROUPS_DESCRIPTIONS = {
    ELB_SG: "Load balancer of {name}",
    ASG_SG: "Hosts of {name}",
    RDS_SG: "Database of {name}",
    CLIENT_SG: "Clients allowed to access {name} hosts and database",
}

# target -> (port, source). Sources are either a group or a CIDR.
INGRESS_RULES = {
    ELB_SG: (
        (HTTP_PORT, ANYWHERE_IPV4),
        (HTTPS_PORT, ANYWHERE_IPV4),
    ),
    ASG_SG: (
        (HTTP_PORT, ELB_SG),
        (HTTPS_PORT, ELB_SG),
        (SSH_PORT, CLIENT_SG),
    ),
    RDS_SG: (
        (MYSQL_PORT, ASG_SG),
        (MYSQL_PORT, CLIENT_SG),
    ),
    CLIENT_SG: (),
}


@dataclass(frozen=True)
class SecurityGroupSet:
    elb_sg: SecurityGroup
    asg_sg: SecurityGroup
    client_sg: SecurityGroup
    rds_sg: Optional[SecurityGroup] = None

    @property
    def groups(self) -> list:
        return [
            group
            for group in (self.elb_sg, self.asg_sg, self.rds_sg, self.client_sg)
            if group is not None
        ]

    def require_database_group(self) -> SecurityGroup:
        """
        Returns the database security group

        :raises: InvalidCombination if the set was built without database
        """
        if self.rds_sg is None:
            raise InvalidCombination(
                "database",
                "Database security group requested but the database is not enabled",
            )
        return self.rds_sg


def create_group_shell(
    name: str, role: str, vpc_id: str, tags: dict = None
) -> SecurityGroup:
    """
    Creates the SecurityGroup without any ingress rule

    :param str name: the application name
    :param str role: one of the GROUPS_SUFFIXES keys
    :param str vpc_id:
    :param dict tags:
    """
    return SecurityGroup(
        define_logical_name(name, GROUPS_SUFFIXES[role]),
        GroupDescription=GROUPS_DESCRIPTIONS[role].format(name=name),
        VpcId=vpc_id,
        Tags=define_tags(name, role, tags),
    )


def define_ingress_rule(port: int, source, groups: dict) -> SecurityGroupRule:
    """
    Defines the ingress rule for the port from the source group or CIDR

    :param int port:
    :param str source: the role of the source group, or a CIDR
    :param dict groups: the allocated groups, per role
    :raises: InvalidCombination when the source group was not allocated
    """
    props = {
        "IpProtocol": "tcp",
        "FromPort": port,
        "ToPort": port,
        "Description": f"{port} from {source}",
    }
    if source in GROUPS_SUFFIXES:
        if source not in groups:
            raise InvalidCombination(
                source, f"Ingress from {source} but the group is not defined"
            )
        props["SourceSecurityGroupId"] = GetAtt(groups[source], "GroupId")
    else:
        props["CidrIp"] = source
    return SecurityGroupRule(**props)


def populate_ingress(groups: dict, rules: dict = None) -> None:
    """
    Sets the SecurityGroupIngress of each allocated group

    :param dict groups: the allocated groups, per role
    :param dict rules: the ingress rules per target role
    """
    if rules is None:
        rules = INGRESS_RULES
    for role, group_rules in rules.items():
        if role not in groups:
            if group_rules and role == RDS_SG:
                LOG.debug("Database not enabled. Skipping database ingress rules")
            continue
        if group_rules:
            setattr(
                groups[role],
                "SecurityGroupIngress",
                [
                    define_ingress_rule(port, source, groups)
                    for port, source in group_rules
                ],
            )


def build_security_groups(
    name: str, vpc_id: str, db_enabled: bool, tags: dict = None
) -> SecurityGroupSet:
    """
    Creates the security groups of the application, with the database one only if the
    database is enabled.

    :param str name:
    :param str vpc_id:
    :param bool db_enabled:
    :param dict tags:
    :rtype: SecurityGroupSet
    """
    roles = [ELB_SG, ASG_SG, CLIENT_SG]
    if db_enabled:
        roles.append(RDS_SG)
    groups = {role: create_group_shell(name, role, vpc_id, tags) for role in roles}
    populate_ingress(groups)
    return SecurityGroupSet(
        elb_sg=groups[ELB_SG],
        asg_sg=groups[ASG_SG],
        client_sg=groups[CLIENT_SG],
        rds_sg=groups.get(RDS_SG),
    )
