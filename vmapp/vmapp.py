# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Main module generating the VM App: load balancer, hosts launch template and autoscaling group,
and the database and table when enabled, from the resolved configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from troposphere import GetAtt, Output, Ref, Template
from troposphere.autoscaling import AutoScalingGroup
from troposphere.dynamodb import Table
from troposphere.ec2 import LaunchTemplate
from troposphere.elasticloadbalancing import LoadBalancer
from troposphere.rds import DBInstance, DBSubnetGroup

from vmapp.common.logging import LOG
from vmapp.common.troposphere_tools import add_outputs, add_resource, build_template
from vmapp.compute.hosts_template import add_autoscaling_group, add_launch_template
from vmapp.config import VmAppConfiguration
from vmapp.dynamodb.dynamodb_template import define_table
from vmapp.elb.elb_template import create_load_balancer
from vmapp.exceptions import InvalidCombination
from vmapp.iam.policies import HostsIam, create_hosts_iam
from vmapp.network.security_groups import SecurityGroupSet, build_security_groups
from vmapp.rds.rds_template import create_db_instance, create_db_subnet_group
from vmapp.resolver import ResolvedConfiguration, resolve_configuration


@dataclass(frozen=True)
class VMApp:
    """
    The resolved VM App resources, ready to be rendered into a CFN template
    """

    settings: ResolvedConfiguration
    security_groups: SecurityGroupSet
    iam: HostsIam
    elb: LoadBalancer
    launch_template: LaunchTemplate
    asg: AutoScalingGroup
    db_subnet_group: Optional[DBSubnetGroup] = None
    db: Optional[DBInstance] = None
    table: Optional[Table] = None

    @property
    def resources(self) -> list:
        resources = self.security_groups.groups + [
            self.iam.role,
            self.iam.instance_profile,
            self.elb,
            self.launch_template,
            self.asg,
        ]
        for optional in (self.db_subnet_group, self.db, self.table):
            if optional is not None:
                resources.append(optional)
        return resources

    def define_outputs(self) -> list:
        outputs = [
            Output("LoadBalancerDnsName", Value=GetAtt(self.elb, "DNSName")),
            Output("AutoScalingGroupName", Value=Ref(self.asg)),
            Output("LaunchTemplateId", Value=Ref(self.launch_template)),
            Output("HostsRoleArn", Value=GetAtt(self.iam.role, "Arn")),
            Output(
                "ClientSecurityGroupId",
                Value=GetAtt(self.security_groups.client_sg, "GroupId"),
            ),
        ]
        if self.db is not None:
            outputs += [
                Output("DbEndpointAddress", Value=GetAtt(self.db, "Endpoint.Address")),
                Output("DbEndpointPort", Value=GetAtt(self.db, "Endpoint.Port")),
            ]
        if self.table is not None:
            outputs.append(Output("TableName", Value=Ref(self.table)))
        return outputs

    def to_template(self) -> Template:
        """
        Renders all the VM App resources and outputs into a new template

        :rtype: troposphere.Template
        """
        template = build_template(f"VM App {self.settings.name}")
        for resource in self.resources:
            add_resource(template, resource)
        add_outputs(template, self.define_outputs())
        return template


def check_features_consistency(
    settings: ResolvedConfiguration,
    security_groups: SecurityGroupSet,
    iam: HostsIam,
    db: Optional[DBInstance],
    table: Optional[Table],
) -> None:
    """
    Ensures the security groups, the policies and the resources agree with the features enabled

    :raises: InvalidCombination
    """
    db_artifacts = {
        "database security group": security_groups.rds_sg is not None,
        "database connect policy": iam.policy_set.database is not None,
        "database instance": db is not None,
    }
    table_artifacts = {
        "table access policy": iam.policy_set.table is not None,
        "table": table is not None,
    }
    for feature, enabled, artifacts in (
        ("database", settings.db_enabled, db_artifacts),
        ("table", settings.table_enabled, table_artifacts),
    ):
        for artifact, present in artifacts.items():
            if present != enabled:
                raise InvalidCombination(
                    feature,
                    f"{settings.name} - {artifact} "
                    f"{'missing' if enabled else 'defined'} with {feature} "
                    f"{'enabled' if enabled else 'disabled'}",
                )


def assemble_vmapp(settings: ResolvedConfiguration) -> VMApp:
    """
    Creates all the resources of the VM App from the resolved settings

    :param ResolvedConfiguration settings:
    :rtype: VMApp
    """
    security_groups = build_security_groups(
        settings.name, settings.vpc.vpc_id, settings.db_enabled, settings.tags
    )
    iam = create_hosts_iam(
        settings.name, settings.region, settings.db_enabled, settings.table_enabled
    )
    elb = create_load_balancer(settings, security_groups)
    launch_template = add_launch_template(
        settings, security_groups, iam.instance_profile
    )
    asg = add_autoscaling_group(settings, launch_template, elb)
    db_subnet_group = None
    db = None
    if settings.db_enabled:
        db_subnet_group = create_db_subnet_group(settings)
        db = create_db_instance(settings, security_groups, db_subnet_group)
    table = None
    if settings.table_enabled:
        table = define_table(settings)
    check_features_consistency(settings, security_groups, iam, db, table)
    return VMApp(
        settings=settings,
        security_groups=security_groups,
        iam=iam,
        elb=elb,
        launch_template=launch_template,
        asg=asg,
        db_subnet_group=db_subnet_group,
        db=db,
        table=table,
    )


def generate_vmapp(config: VmAppConfiguration) -> VMApp:
    """
    Resolves the configuration and creates the VM App

    :param VmAppConfiguration config:
    :rtype: VMApp
    :raises: MissingDependency, UnsupportedRegion, InvalidCombination
    """
    settings = resolve_configuration(config)
    vmapp = assemble_vmapp(settings)
    LOG.info(
        f"{settings.name} - VM App with {len(vmapp.resources)} resources. "
        f"Database: {settings.db_enabled}, Table: {settings.table_enabled}"
    )
    return vmapp
