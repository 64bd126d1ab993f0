"""
Parser options and loading them from a YAML file.
"""

from dataclasses import dataclass, fields
from pathlib import Path

import yaml


@dataclass
class ParserOptions:
    # Reject a DEF name that is already bound instead of rebinding it
    strict_def: bool = False
    # Deepest allowed nesting of node statements and PROTO bodies
    max_depth: int = 100
    # Require the "#VRML V2.0" header on the first line
    require_header: bool = False


def load_options(path) -> ParserOptions:
    """Read ParserOptions from a YAML mapping; unknown keys are an error."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of parser options")

    known = {f.name for f in fields(ParserOptions)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"{path}: unknown parser option(s): {', '.join(unknown)}")

    options = ParserOptions(**data)
    if not isinstance(options.max_depth, int) or options.max_depth < 1:
        raise ValueError(f"{path}: max_depth must be a positive integer")
    return options
