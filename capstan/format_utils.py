"""
Output format utilities for capstan CLI commands.

Provides functions to format data as YAML, JSON, and JSONL.
"""

import json
import os
from typing import Dict, Any, Iterator
import yaml

FORMATS = ('json', 'jsonl', 'yaml')


def format_output(data: Iterator[Dict[str, Any]], format: str) -> Iterator[str]:
    """
    Format data according to the specified format.

    Args:
        data: Iterator of dictionaries to format
        format: Output format (json, jsonl, yaml)

    Yields:
        Formatted strings for output
    """
    if format == "jsonl":
        yield from format_jsonl(data)
    elif format == "json":
        yield from format_json(data)
    elif format == "yaml":
        yield from format_yaml(data)
    else:
        raise ValueError(f"Unknown format: {format}")


def format_jsonl(data: Iterator[Dict[str, Any]]) -> Iterator[str]:
    """Format data as JSON Lines (one JSON object per line)."""
    for item in data:
        yield json.dumps(item, ensure_ascii=False)


def format_json(data: Iterator[Dict[str, Any]]) -> Iterator[str]:
    """Format data as a single JSON array."""
    all_data = list(data)
    yield json.dumps(all_data, ensure_ascii=False, indent=2)


def format_yaml(data: Iterator[Dict[str, Any]]) -> Iterator[str]:
    """Format data as YAML."""
    all_data = list(data)
    yield yaml.safe_dump(all_data, default_flow_style=False, allow_unicode=True, sort_keys=False)


def get_format_from_env(default=None):
    """
    Get output format from the CAPSTAN_FORMAT environment variable.

    Returns default when unset or not a known format.
    """
    format = os.environ.get('CAPSTAN_FORMAT', '').lower()
    if format not in FORMATS:
        return default
    return format
