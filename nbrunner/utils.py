import contextlib
import json
import os
from collections import deque
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

import yaml

TRUE_VALUES = {"true", "1", "yes", "y", "on"}
FALSE_VALUES = {"false", "0", "no", "n", "off", ""}


def load_dict_from_yaml(file_name: str, folder: str = ""):
    path = os.path.join(folder, file_name)
    with open(path, 'r') as file:
        data = yaml.safe_load(file)
    return data


def load_dict_from_file(path: str) -> Dict[str, Any]:
    """Load a mapping from a JSON or YAML file, picking the parser by suffix."""
    if path.endswith((".yml", ".yaml")):
        data = load_dict_from_yaml(path)
    else:
        with open(path, 'r') as file:
            data = json.load(file)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data


def find_nested(obj: Any, keys: Sequence[str]) -> Optional[Any]:
    """
    Walk nested mappings following keys.

    Returns None as soon as a level is missing or is not a mapping.
    """
    current = obj
    for key in keys:
        if not isinstance(current, Mapping) or key not in current:
            return None
        current = current[key]
    return current


def parse_flag(value: Any) -> bool:
    """Interpret a boolean-ish action input ("true", "1", "off", "", ...)."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Not a boolean value: {value!r}")


def tail_lines(path: str, count: int) -> List[str]:
    """Return the last count lines of a text file."""
    with open(path, 'r', errors='replace') as file:
        return [line.rstrip("\n") for line in deque(file, maxlen=count)]


@contextlib.contextmanager
def patched_environ(values: Mapping[str, str]) -> Iterator[None]:
    """Export values into os.environ, restoring previous values on exit."""
    previous = {key: os.environ.get(key) for key in values}
    os.environ.update(values)
    try:
        yield
    finally:
        for key, old in previous.items():
            if old is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = old
