# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from os import path

from behave import given, then

from vmapp.config import load_configuration
from vmapp.vmapp import generate_vmapp


def here():
    return path.abspath(path.dirname(__file__))


@given("I use {file_path} as my vmapp configuration")
def step_impl(context, file_path):
    cases_path = path.abspath(f"{here()}/../../{file_path}")
    context.config_file = cases_path
    context.vmapp_config = load_configuration(cases_path)


@then("I render the template")
def step_impl(context):
    context.vmapp = generate_vmapp(context.vmapp_config)
    context.template = context.vmapp.to_template().to_dict()


@then("the template has {count:d} resources")
def step_impl(context, count):
    assert len(context.template["Resources"]) == count


@then("the template has no {resource_type} resource")
def step_impl(context, resource_type):
    assert not [
        res
        for res in context.template["Resources"].values()
        if res["Type"] == resource_type
    ]


@then("the template has one {resource_type} resource")
def step_impl(context, resource_type):
    assert (
        len(
            [
                res
                for res in context.template["Resources"].values()
                if res["Type"] == resource_type
            ]
        )
        == 1
    )
