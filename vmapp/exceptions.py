#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Custom exceptions for vmapp
"""


class VmAppException(Exception):
    """
    Top class for VM App Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class MissingDependency(VmAppException):
    """
    Exception when a setting cannot be derived because the setting it depends on is missing,
    i.e. no VPC can be found when no subnet was given.
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field} - {reason}")


class UnsupportedRegion(VmAppException):
    """
    Exception when the region has no known base image
    """

    def __init__(self, region: str, supported=None):
        self.region = region
        self.supported = tuple(supported) if supported else ()
        super().__init__(
            f"Region {region} is not supported. Supported regions: "
            f"{', '.join(self.supported)}"
        )


class InvalidCombination(VmAppException):
    """
    Exception when two settings conflict, i.e. database security rules are requested
    but the database feature is disabled.
    """

    def __init__(self, feature: str, reason: str):
        self.feature = feature
        self.reason = reason
        super().__init__(f"{feature} - {reason}")


class ConfigurationError(VmAppException):
    """
    Exception when the input configuration cannot be read or is not valid
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path} - {reason}")
