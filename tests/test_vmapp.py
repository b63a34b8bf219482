# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from dataclasses import replace

import pytest

from vmapp.config import VmAppConfiguration
from vmapp.exceptions import InvalidCombination
from vmapp.iam.policies import create_hosts_iam
from vmapp.network.security_groups import build_security_groups
from vmapp.resolver import resolve_configuration
from vmapp.vmapp import assemble_vmapp, check_features_consistency, generate_vmapp


def props(resource) -> dict:
    return resource.to_dict()["Properties"]


def test_scenario_defaults(demo_config, ingress):
    vmapp = generate_vmapp(demo_config)
    lt_data = props(vmapp.launch_template)["LaunchTemplateData"]
    assert lt_data["ImageId"] == "ami-a60c23b0"
    assert lt_data["InstanceType"] == "t2.micro"
    assert lt_data["KeyName"] == "demo"
    assert "UserData" not in lt_data
    asg = props(vmapp.asg)
    assert int(asg["MinSize"]) == 1
    assert int(asg["MaxSize"]) == 2
    assert vmapp.db is None
    assert vmapp.db_subnet_group is None
    assert vmapp.table is None
    assert vmapp.security_groups.rds_sg is None
    assert vmapp.iam.policy_set.database is None
    assert vmapp.iam.policy_set.table is None
    sg_set = vmapp.security_groups
    assert ingress(sg_set.asg_sg) == {
        (80, sg_set.elb_sg.title),
        (443, sg_set.elb_sg.title),
        (22, sg_set.client_sg.title),
    }


def test_scenario_database_and_table(demo_full_config, ingress):
    vmapp = generate_vmapp(demo_full_config)
    db = props(vmapp.db)
    assert db["Engine"] == "mysql"
    assert db["DBInstanceClass"] == "db.t2.micro"
    assert int(db["AllocatedStorage"]) == 10
    assert db["MultiAZ"] in (False, "false")
    assert db["PubliclyAccessible"] in (True, "true")
    assert db["DBName"] == "demo"
    assert db["MasterUsername"] == "root"
    assert db["MasterUserPassword"] == "{{resolve:ssm-secure:/rds/password}}"
    assert db["DBSubnetGroupName"] == {"Ref": vmapp.db_subnet_group.title}
    assert db["VPCSecurityGroups"] == [
        {"Fn::GetAtt": [vmapp.security_groups.rds_sg.title, "GroupId"]}
    ]
    assert props(vmapp.db_subnet_group)["SubnetIds"] == ["subnet-0a1b2c3d"]

    table = props(vmapp.table)
    assert table["AttributeDefinitions"] == [
        {"AttributeName": "PropertyName", "AttributeType": "S"}
    ]
    assert table["KeySchema"] == [{"AttributeName": "PropertyName", "KeyType": "HASH"}]
    assert int(table["ProvisionedThroughput"]["ReadCapacityUnits"]) == 10
    assert int(table["ProvisionedThroughput"]["WriteCapacityUnits"]) == 10

    policy_names = {policy["PolicyName"] for policy in props(vmapp.iam.role)["Policies"]}
    assert policy_names == {
        "demo-ComputeManagement",
        "demo-DatabaseConnect",
        "demo-TableAccess",
    }
    sg_set = vmapp.security_groups
    assert ingress(sg_set.rds_sg) == {
        (3306, sg_set.asg_sg.title),
        (3306, sg_set.client_sg.title),
    }


def test_table_throughput(us_east_subnet):
    config = VmAppConfiguration(
        name="demo",
        subnets=[us_east_subnet],
        table_enabled=True,
        table_read_capacity=25,
        table_write_capacity=5,
    )
    vmapp = generate_vmapp(config)
    throughput = props(vmapp.table)["ProvisionedThroughput"]
    assert int(throughput["ReadCapacityUnits"]) == 25
    assert int(throughput["WriteCapacityUnits"]) == 5
    assert vmapp.db is None


def test_database_disabled_for_every_variation(us_east_subnet):
    for table_enabled in (True, False):
        for instance_type in ("t2.micro", "m5.large"):
            config = VmAppConfiguration(
                name="demo",
                subnets=[us_east_subnet],
                db_enabled=False,
                db_name="ignored",
                table_enabled=table_enabled,
                instance_type=instance_type,
            )
            vmapp = generate_vmapp(config)
            assert vmapp.db is None
            assert vmapp.security_groups.rds_sg is None
            assert vmapp.iam.policy_set.database is None
            template = vmapp.to_template().to_dict()
            assert not [
                res
                for res in template["Resources"].values()
                if res["Type"].startswith("AWS::RDS::")
            ]


def test_load_balancer(demo_config):
    vmapp = generate_vmapp(demo_config)
    elb = props(vmapp.elb)
    listeners = {
        (int(listener["LoadBalancerPort"]), int(listener["InstancePort"]))
        for listener in elb["Listeners"]
    }
    assert listeners == {(80, 80), (443, 443)}
    assert all(listener["Protocol"] == "TCP" for listener in elb["Listeners"])
    health_check = elb["HealthCheck"]
    assert health_check["Target"] == "TCP:80"
    assert int(health_check["Interval"]) == 5
    assert int(health_check["Timeout"]) == 2
    assert int(health_check["UnhealthyThreshold"]) == 2
    assert int(health_check["HealthyThreshold"]) == 2
    assert elb["Subnets"] == ["subnet-0a1b2c3d"]
    assert elb["SecurityGroups"] == [
        {"Fn::GetAtt": [vmapp.security_groups.elb_sg.title, "GroupId"]}
    ]


def test_launch_template_and_asg(us_east_subnet):
    config = VmAppConfiguration(
        name="demo",
        subnets=[us_east_subnet],
        management_security_groups=["sg-0123abcd"],
        user_data="#!/bin/bash\necho hello",
    )
    vmapp = generate_vmapp(config)
    lt_data = props(vmapp.launch_template)["LaunchTemplateData"]
    interface = lt_data["NetworkInterfaces"][0]
    assert interface["AssociatePublicIpAddress"] in (True, "true")
    assert interface["Groups"] == [
        {"Fn::GetAtt": [vmapp.security_groups.asg_sg.title, "GroupId"]},
        "sg-0123abcd",
    ]
    assert lt_data["IamInstanceProfile"] == {
        "Arn": {"Fn::GetAtt": [vmapp.iam.instance_profile.title, "Arn"]}
    }
    assert lt_data["UserData"] == {"Fn::Base64": "#!/bin/bash\necho hello"}

    asg = props(vmapp.asg)
    assert asg["Cooldown"] == "300"
    assert int(asg["Cooldown"]) == 300
    assert asg["HealthCheckType"] == "EC2"
    assert asg["TerminationPolicies"] == ["ClosestToNextInstanceHour"]
    assert asg["MetricsCollection"][0]["Metrics"] == [
        "GroupInServiceInstances",
        "GroupTotalInstances",
    ]
    assert asg["LoadBalancerNames"] == [{"Ref": vmapp.elb.title}]
    assert asg["LaunchTemplate"]["LaunchTemplateId"] == {
        "Ref": vmapp.launch_template.title
    }
    assert asg["VPCZoneIdentifier"] == ["subnet-0a1b2c3d"]


def test_template_outputs(demo_full_config):
    template = generate_vmapp(demo_full_config).to_template().to_dict()
    assert set(template["Outputs"]) == {
        "LoadBalancerDnsName",
        "AutoScalingGroupName",
        "LaunchTemplateId",
        "HostsRoleArn",
        "ClientSecurityGroupId",
        "DbEndpointAddress",
        "DbEndpointPort",
        "TableName",
    }
    assert len(template["Resources"]) == 12


def test_generation_is_deterministic(demo_full_config):
    first = generate_vmapp(demo_full_config).to_template().to_json()
    second = generate_vmapp(demo_full_config).to_template().to_json()
    assert first == second


def test_features_disagreement(demo_config):
    settings = resolve_configuration(demo_config)
    vmapp = assemble_vmapp(settings)
    db_settings = replace(settings, db_enabled=True)
    with pytest.raises(InvalidCombination) as error:
        check_features_consistency(
            db_settings, vmapp.security_groups, vmapp.iam, None, None
        )
    assert error.value.feature == "database"

    with pytest.raises(InvalidCombination) as error:
        check_features_consistency(
            settings,
            build_security_groups("demo", "vpc-0a1b2c3d", db_enabled=False),
            create_hosts_iam("demo", "us-east-1", False, True),
            None,
            None,
        )
    assert error.value.feature == "table"
