# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to create the Launch Template for the hosts and the AutoScaling group that runs them
behind the load balancer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from troposphere.elasticloadbalancing import LoadBalancer
    from troposphere.iam import InstanceProfile
    from vmapp.network.security_groups import SecurityGroupSet
    from vmapp.resolver import ResolvedConfiguration

from troposphere import Base64, GetAtt, Ref
from troposphere.autoscaling import (
    AutoScalingGroup,
    LaunchTemplateSpecification,
    MetricsCollection,
)
from troposphere.ec2 import (
    IamInstanceProfile,
    LaunchTemplate,
    LaunchTemplateData,
    NetworkInterfaces,
)

from vmapp.common import define_logical_name
from vmapp.common.tagging import define_asg_tags, define_tag_specifications

MIN_SIZE = 1
MAX_SIZE = 2
DEFAULT_COOLDOWN = "300"
HEALTH_CHECK_TYPE = "EC2"
TERMINATION_POLICIES = ["ClosestToNextInstanceHour"]
METRICS_GRANULARITY = "1Minute"
ENABLED_METRICS = ["GroupInServiceInstances", "GroupTotalInstances"]


def define_hosts_security_groups(
    security_groups: SecurityGroupSet, management_security_groups: tuple
) -> list:
    """
    The hosts security groups: the app hosts one, then the management ones given by the user.
    """
    return [GetAtt(security_groups.asg_sg, "GroupId")] + list(
        management_security_groups
    )


def add_launch_template(
    settings: ResolvedConfiguration,
    security_groups: SecurityGroupSet,
    instance_profile: InstanceProfile,
) -> LaunchTemplate:
    """Function to create a launch template.

    :param ResolvedConfiguration settings:
    :param SecurityGroupSet security_groups:
    :param troposphere.iam.InstanceProfile instance_profile:

    :return: launch_template
    :rtype: troposphere.ec2.LaunchTemplate
    """
    data_props = {
        "ImageId": settings.image_id,
        "InstanceType": settings.instance_type,
        "KeyName": settings.key_name,
        "IamInstanceProfile": IamInstanceProfile(Arn=GetAtt(instance_profile, "Arn")),
        "NetworkInterfaces": [
            NetworkInterfaces(
                DeviceIndex=0,
                AssociatePublicIpAddress=True,
                DeleteOnTermination=True,
                Groups=define_hosts_security_groups(
                    security_groups, settings.management_security_groups
                ),
            )
        ],
        "TagSpecifications": define_tag_specifications(
            settings.name, "host", ["instance", "volume"], settings.tags
        ),
    }
    if settings.user_data:
        data_props["UserData"] = Base64(settings.user_data)
    return LaunchTemplate(
        define_logical_name(settings.name, "LaunchTemplate"),
        LaunchTemplateName=f"{settings.name}-hosts",
        LaunchTemplateData=LaunchTemplateData(**data_props),
    )


def add_autoscaling_group(
    settings: ResolvedConfiguration,
    launch_template: LaunchTemplate,
    load_balancer: LoadBalancer,
) -> AutoScalingGroup:
    """
    Creates the AutoScaling group of the hosts in the subnets, registered to the load balancer

    :param ResolvedConfiguration settings:
    :param troposphere.ec2.LaunchTemplate launch_template:
    :param troposphere.elasticloadbalancing.LoadBalancer load_balancer:
    :rtype: troposphere.autoscaling.AutoScalingGroup
    """
    return AutoScalingGroup(
        define_logical_name(settings.name, "Asg"),
        MinSize=MIN_SIZE,
        MaxSize=MAX_SIZE,
        Cooldown=DEFAULT_COOLDOWN,
        HealthCheckType=HEALTH_CHECK_TYPE,
        TerminationPolicies=list(TERMINATION_POLICIES),
        MetricsCollection=[
            MetricsCollection(
                Granularity=METRICS_GRANULARITY,
                Metrics=list(ENABLED_METRICS),
            )
        ],
        LaunchTemplate=LaunchTemplateSpecification(
            LaunchTemplateId=Ref(launch_template),
            Version=GetAtt(launch_template, "LatestVersionNumber"),
        ),
        LoadBalancerNames=[Ref(load_balancer)],
        VPCZoneIdentifier=settings.subnet_ids,
        Tags=define_asg_tags(settings.name, "asg", settings.tags),
    )
