"""
Output format utilities for subtree-modules commands.

Formats result dictionaries as JSONL (default), JSON, YAML, CSV or TSV.
"""

import csv
import io
import json
import os
from typing import Any, Dict, Iterable, Iterator, List, Optional

import yaml

FORMATS = ('jsonl', 'json', 'yaml', 'csv', 'tsv')


def format_output(data: Iterable[Dict[str, Any]], format: str,
                  fields: Optional[List[str]] = None) -> Iterator[str]:
    """
    Format data according to the specified format.

    Args:
        data: Dictionaries to format
        format: Output format (jsonl, json, yaml, csv, tsv)
        fields: Optional list of columns (CSV/TSV only)

    Yields:
        Formatted strings for output
    """
    if format == "jsonl":
        for item in data:
            yield json.dumps(item, ensure_ascii=False)
    elif format == "json":
        yield json.dumps(list(data), ensure_ascii=False, indent=2)
    elif format == "yaml":
        yield yaml.safe_dump(list(data), default_flow_style=False, allow_unicode=True, sort_keys=False).rstrip('\n')
    elif format == "csv":
        yield from format_delimited(data, ',', fields)
    elif format == "tsv":
        yield from format_delimited(data, '\t', fields)
    else:
        raise ValueError(f"Unknown format: {format}")


def format_delimited(data: Iterable[Dict[str, Any]], delimiter: str,
                     fields: Optional[List[str]] = None) -> Iterator[str]:
    """
    Format data as CSV/TSV with a header row.

    Nested values are flattened to dotted keys. Without explicit fields the
    columns are the union of keys in first-seen order.
    """
    rows = [flatten_dict(item) for item in data]
    if not rows:
        return

    if fields is None:
        fields = []
        for row in rows:
            for key in row:
                if key not in fields:
                    fields.append(key)

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=fields, delimiter=delimiter,
                            extrasaction='ignore', lineterminator='\n')
    writer.writeheader()
    writer.writerows(rows)
    yield output.getvalue().rstrip('\n')


def flatten_dict(d: Dict[str, Any], parent_key: str = '', sep: str = '.') -> Dict[str, Any]:
    """
    Flatten a nested dictionary.

    Example:
        {'a': {'b': 1, 'c': 2}} -> {'a.b': 1, 'a.c': 2}

    Lists of scalars become comma-separated strings; lists of mappings
    become a ``<key>_count`` column.
    """
    items: Dict[str, Any] = {}
    for k, v in d.items():
        new_key = f"{parent_key}{sep}{k}" if parent_key else k
        if isinstance(v, dict):
            items.update(flatten_dict(v, new_key, sep=sep))
        elif isinstance(v, list):
            if all(not isinstance(item, (dict, list)) for item in v):
                items[new_key] = ', '.join(str(item) for item in v)
            else:
                items[new_key + '_count'] = len(v)
        else:
            items[new_key] = v
    return items


def get_format_from_env(default: str = 'jsonl') -> str:
    """Output format from SUBTREE_MODULES_FORMAT, falling back to default."""
    format = os.environ.get('SUBTREE_MODULES_FORMAT', default).lower()
    if format not in FORMATS:
        return default
    return format
