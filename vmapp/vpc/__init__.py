# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Network primitives the application is deployed into.

A subnet always knows the VPC it belongs to, and a VPC always knows its region,
which allows to derive the VPC and region settings from the subnets alone.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Vpc:
    vpc_id: str
    region: str


@dataclass(frozen=True)
class Subnet:
    subnet_id: str
    vpc: Vpc

    @property
    def vpc_id(self) -> str:
        return self.vpc.vpc_id

    @property
    def region(self) -> str:
        return self.vpc.region
