# cheatsync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "data_dir": "~/.config/cheatsync/data",
    "backend": {
        "endpoint": "",
        "api_key": "",
        "timeout": 30.0,
    },
    "auto_sync": {
        "enabled": False,
        "interval_minutes": 15,
    },
    "merge_mode": "snapshot",
    "output": {
        "verbose": False,
        "colored": True,
    },
}


def default_config() -> dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# cheatsync Configuration
#
# data_dir holds notes.json, apps.json, cheat_sheets.json and the device ID.
# backend.api_key may be left empty and supplied via CHEATSYNC_API_KEY.
# auto_sync.enabled lets "cheatsync watch" run without --interval.
#
# Merge modes:
#   - snapshot: take all collections from the snapshot captured last
#   - item:     merge item by item, newest version of each item wins

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
