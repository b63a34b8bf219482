# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for DynamoDB to create the application table
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vmapp.resolver import ResolvedConfiguration

from troposphere import dynamodb

from vmapp.common import define_logical_name
from vmapp.common.tagging import define_tags
from vmapp.exceptions import InvalidCombination

HASH_KEY_NAME = "PropertyName"
HASH_KEY_TYPE = "S"


def table_name(name: str) -> str:
    return f"{name}-table"


def define_table(settings: ResolvedConfiguration) -> dynamodb.Table:
    """Function to create the DynamoDB table resource"""
    if not settings.table_enabled:
        raise InvalidCombination("table", f"{settings.name} - Table is not enabled")
    return dynamodb.Table(
        define_logical_name(settings.name, "Table"),
        TableName=table_name(settings.name),
        AttributeDefinitions=[
            dynamodb.AttributeDefinition(
                AttributeName=HASH_KEY_NAME, AttributeType=HASH_KEY_TYPE
            )
        ],
        KeySchema=[dynamodb.KeySchema(AttributeName=HASH_KEY_NAME, KeyType="HASH")],
        ProvisionedThroughput=dynamodb.ProvisionedThroughput(
            ReadCapacityUnits=settings.table_read_capacity,
            WriteCapacityUnits=settings.table_write_capacity,
        ),
        Tags=define_tags(settings.name, "table", settings.tags),
    )
