# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

import pytest
from troposphere.ec2 import SecurityGroup

from vmapp.exceptions import InvalidCombination
from vmapp.network.security_groups import (
    ASG_SG,
    CLIENT_SG,
    ELB_SG,
    RDS_SG,
    build_security_groups,
    create_group_shell,
    define_ingress_rule,
    populate_ingress,
)


def test_groups_without_database(ingress):
    sg_set = build_security_groups("demo", "vpc-0a1b2c3d", db_enabled=False)
    assert sg_set.rds_sg is None
    assert len(sg_set.groups) == 3
    assert ingress(sg_set.elb_sg) == {(80, "0.0.0.0/0"), (443, "0.0.0.0/0")}
    assert ingress(sg_set.asg_sg) == {
        (80, sg_set.elb_sg.title),
        (443, sg_set.elb_sg.title),
        (22, sg_set.client_sg.title),
    }
    assert ingress(sg_set.client_sg) == set()
    with pytest.raises(InvalidCombination):
        sg_set.require_database_group()


def test_groups_with_database(ingress):
    sg_set = build_security_groups("demo", "vpc-0a1b2c3d", db_enabled=True)
    assert isinstance(sg_set.rds_sg, SecurityGroup)
    assert len(sg_set.groups) == 4
    assert ingress(sg_set.rds_sg) == {
        (3306, sg_set.asg_sg.title),
        (3306, sg_set.client_sg.title),
    }
    assert ingress(sg_set.asg_sg) == {
        (80, sg_set.elb_sg.title),
        (443, sg_set.elb_sg.title),
        (22, sg_set.client_sg.title),
    }
    assert sg_set.require_database_group() is sg_set.rds_sg


def test_groups_in_vpc_and_tagged():
    sg_set = build_security_groups(
        "demo", "vpc-0a1b2c3d", db_enabled=True, tags={"team": "web"}
    )
    for group in sg_set.groups:
        props = group.to_dict()["Properties"]
        assert props["VpcId"] == "vpc-0a1b2c3d"
        tags = {tag["Key"]: tag["Value"] for tag in props["Tags"]}
        assert tags["team"] == "web"
        assert tags["vmapp::name"] == "demo"
    assert sg_set.client_sg.title == "DemoClientSg"


def test_rules_from_undefined_group():
    groups = {
        role: create_group_shell("demo", role, "vpc-0a1b2c3d")
        for role in (ELB_SG, ASG_SG)
    }
    with pytest.raises(InvalidCombination) as error:
        populate_ingress(groups, {ASG_SG: ((22, CLIENT_SG),)})
    assert error.value.feature == CLIENT_SG


def test_database_rules_skipped_without_database_group(ingress):
    groups = {
        role: create_group_shell("demo", role, "vpc-0a1b2c3d")
        for role in (ELB_SG, ASG_SG, CLIENT_SG)
    }
    populate_ingress(groups)
    assert RDS_SG not in groups
    assert ingress(groups[ASG_SG])


def test_ingress_rules_description():
    groups = {ELB_SG: create_group_shell("demo", ELB_SG, "vpc-0a1b2c3d")}
    from_group = define_ingress_rule(80, ELB_SG, groups).to_dict()
    from_cidr = define_ingress_rule(443, "0.0.0.0/0", groups).to_dict()
    assert from_group["Description"] == "80 from elb-sg"
    assert "CidrIp" not in from_group
    assert from_cidr["Description"] == "443 from 0.0.0.0/0"
    assert from_cidr["CidrIp"] == "0.0.0.0/0"
    assert "SourceSecurityGroupId" not in from_cidr
