# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from os import path

import pytest

from vmapp.config import VmAppConfiguration
from vmapp.vpc import Subnet, Vpc


@pytest.fixture
def here():
    return path.abspath(path.dirname(__file__))


@pytest.fixture
def us_east_vpc():
    return Vpc("vpc-0a1b2c3d", "us-east-1")


@pytest.fixture
def us_east_subnet(us_east_vpc):
    return Subnet("subnet-0a1b2c3d", us_east_vpc)


@pytest.fixture
def demo_config(us_east_subnet):
    return VmAppConfiguration(name="demo", subnets=[us_east_subnet])


@pytest.fixture
def demo_full_config(us_east_subnet):
    return VmAppConfiguration(
        name="demo", subnets=[us_east_subnet], db_enabled=True, table_enabled=True
    )


def ingress_of(security_group) -> set:
    """
    Returns the ingress rules of the security group as (port, source) where source is
    the CIDR or the title of the source security group
    """
    rules = set()
    props = security_group.to_dict()["Properties"]
    for rule in props.get("SecurityGroupIngress", []):
        assert rule["FromPort"] == rule["ToPort"]
        if "CidrIp" in rule:
            source = rule["CidrIp"]
        else:
            source = rule["SourceSecurityGroupId"]["Fn::GetAtt"][0]
        rules.add((int(rule["FromPort"]), source))
    return rules


@pytest.fixture
def ingress():
    return ingress_of
