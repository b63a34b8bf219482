#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Load the JSON Schema specification of the vmapp configuration file
"""

import json

from importlib_resources import files as pkg_files

SPEC_FILE = "vmapp.spec.json"


def load_spec(spec_file: str = SPEC_FILE) -> dict:
    source = pkg_files("vmapp").joinpath("specs").joinpath(spec_file)
    return json.loads(source.read_text())
