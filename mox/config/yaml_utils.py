"""YAML loading with ``!env`` substitution for mox config files."""

import os
from typing import Any

import yaml


class EnvSafeLoader(yaml.SafeLoader):
    """SafeLoader that resolves ``!env`` tags from the process environment."""


def _construct_env(loader: EnvSafeLoader, node: yaml.Node) -> Any:
    """Resolve ``!env NAME`` (required) or ``!env [NAME, default]``.

    An environment value is always a string; the default keeps its YAML type
    so pydantic can coerce either one to the field type.
    """
    if isinstance(node, yaml.ScalarNode):
        name = loader.construct_scalar(node)
        value = os.getenv(name)
        if value is None:
            raise ValueError(f"Required environment variable '{name}' is not set")
        return value

    if isinstance(node, yaml.SequenceNode):
        items = loader.construct_sequence(node)
        if len(items) != 2:
            raise yaml.constructor.ConstructorError(None, None, f'!env sequence must have exactly 2 elements [name, default], got {len(items)}', node.start_mark)
        name, default = items
        if not isinstance(name, str):
            raise yaml.constructor.ConstructorError(None, None, f'Environment variable name must be a string, got {type(name).__name__}', node.start_mark)
        return os.getenv(name, default)

    raise yaml.constructor.ConstructorError(None, None, f'!env expects a name or [name, default], got {type(node).__name__}', node.start_mark)


EnvSafeLoader.add_constructor('!env', _construct_env)


def safe_load_with_env(stream) -> Any:
    return yaml.load(stream, Loader=EnvSafeLoader)
