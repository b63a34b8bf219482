# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to create the Classic Load Balancer, passing TCP 80 and 443 through to the hosts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vmapp.network.security_groups import SecurityGroupSet
    from vmapp.resolver import ResolvedConfiguration

from troposphere import GetAtt
from troposphere.elasticloadbalancing import HealthCheck, Listener, LoadBalancer

from vmapp.common import define_logical_name
from vmapp.common.tagging import define_tags

LISTENERS_PORTS = ((80, 80), (443, 443))
HEALTH_CHECK_PORT = 80
HEALTH_CHECK_INTERVAL = 5
HEALTH_CHECK_TIMEOUT = 2
UNHEALTHY_THRESHOLD = 2
HEALTHY_THRESHOLD = 2


def define_listeners() -> list:
    return [
        Listener(
            LoadBalancerPort=lb_port,
            InstancePort=instance_port,
            Protocol="TCP",
            InstanceProtocol="TCP",
        )
        for lb_port, instance_port in LISTENERS_PORTS
    ]


def define_health_check() -> HealthCheck:
    return HealthCheck(
        Target=f"TCP:{HEALTH_CHECK_PORT}",
        Interval=HEALTH_CHECK_INTERVAL,
        Timeout=HEALTH_CHECK_TIMEOUT,
        UnhealthyThreshold=UNHEALTHY_THRESHOLD,
        HealthyThreshold=HEALTHY_THRESHOLD,
    )


def create_load_balancer(
    settings: ResolvedConfiguration, security_groups: SecurityGroupSet
) -> LoadBalancer:
    """
    Creates the internet facing load balancer in the subnets

    :param ResolvedConfiguration settings:
    :param SecurityGroupSet security_groups:
    :rtype: troposphere.elasticloadbalancing.LoadBalancer
    """
    return LoadBalancer(
        define_logical_name(settings.name, "Elb"),
        Listeners=define_listeners(),
        HealthCheck=define_health_check(),
        Subnets=settings.subnet_ids,
        SecurityGroups=[GetAtt(security_groups.elb_sg, "GroupId")],
        Scheme="internet-facing",
        CrossZone=True,
        Tags=define_tags(settings.name, "elb", settings.tags),
    )
