"""Contains utility functions for reading and writing YAML files."""

import os
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

yaml = YAML(typ="safe")


def load_yaml_file(path: Path) -> Any:
    """Loads a YAML file and returns its content."""
    with open(path, encoding="utf-8") as f:
        return yaml.load(f)


def load_yaml_string(content: str) -> Any:
    """Loads a YAML document from a string, such as a file fetched from GitHub."""
    return yaml.load(StringIO(content))


def create_yaml_dumper() -> YAML:
    """Creates a YAML object producing block-style documents that diff well between runs."""
    yaml_dumper = YAML(typ="safe", pure=True)
    yaml_dumper.default_flow_style = False
    yaml_dumper.explicit_start = True
    yaml_dumper.width = 4096  # URLs must not be wrapped
    return yaml_dumper


def dump_yaml_to_file_atomically(data: Any, file_path: Path) -> None:
    """Dumps data to a temporary sibling file, then renames it over the target.

    Readers never observe a half-written file, and an interrupted write
    leaves the previous content in place.
    """
    temp_path = file_path.with_name(file_path.name + ".temp")
    with open(temp_path, "w", encoding="utf-8") as f:
        create_yaml_dumper().dump(data, f)
    os.replace(temp_path, file_path)
