# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Compute resources of the VM App: the Launch Template and the AutoScaling group.
"""
