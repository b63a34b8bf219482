# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to look up existing subnets in the AWS account, for when the configuration
only gives subnet IDs.
"""

from __future__ import annotations

import botocore.client
from boto3.session import Session
from compose_x_common.compose_x_common import keyisset

from vmapp.common.logging import LOG
from vmapp.exceptions import MissingDependency
from vmapp.vpc import Subnet, Vpc


def lookup_subnets(subnet_ids: list, session: Session = None) -> tuple:
    """
    Describes the given subnets and returns them with their VPC, in the same order.

    :param list[str] subnet_ids:
    :param boto3.session.Session session:
    :return: the subnets
    :rtype: tuple[Subnet]
    :raises: MissingDependency if a subnet could not be found, or no region is set
    """
    if session is None:
        session = Session()
    if not subnet_ids:
        raise MissingDependency("subnets", "No subnet ID to look up")
    region = session.region_name
    if not region:
        raise MissingDependency(
            "region",
            f"No AWS region set to look up the subnets {', '.join(subnet_ids)}",
        )
    client = session.client("ec2")
    try:
        subnets_r = client.describe_subnets(SubnetIds=list(subnet_ids))
    except botocore.client.ClientError as error:
        LOG.error(error)
        raise MissingDependency(
            "subnets",
            f"Could not describe the subnets {', '.join(subnet_ids)} in {region}",
        ) from error
    if not keyisset("Subnets", subnets_r):
        raise MissingDependency(
            "subnets", f"None of the subnets {', '.join(subnet_ids)} could be found"
        )
    found = {
        subnet_def["SubnetId"]: subnet_def["VpcId"]
        for subnet_def in subnets_r["Subnets"]
    }
    subnets = []
    for subnet_id in subnet_ids:
        if subnet_id not in found:
            raise MissingDependency("subnets", f"Subnet {subnet_id} not found")
        LOG.info(f"Subnet {subnet_id} belongs to {found[subnet_id]} in {region}")
        subnets.append(Subnet(subnet_id, Vpc(found[subnet_id], region)))
    return tuple(subnets)
