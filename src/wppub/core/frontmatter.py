"""Frontmatter codec: parse and rewrite the leading metadata block of a note"""

import re
from typing import Any, NamedTuple, Union


MetadataValue = Union[bool, int, float, str, list[str]]
MetadataMap = dict[str, MetadataValue]

FRONTMATTER_RE = re.compile(r'\A---\r?\n(.*?)\r?\n---(?:\r?\n)?', re.DOTALL)
KEY_RE = re.compile(r'^(\w+):\s*(.*)$')
ITEM_RE = re.compile(r'^\s+-\s+(.+)$')
NUMBER_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
INT_RE = re.compile(r'^[+-]?\d+$')
QUOTES_RE = re.compile(r'^["\']|["\']\Z')


class Extracted(NamedTuple):
    body: str
    metadata: MetadataMap


def _unquote(value: str) -> str:
    """Strip one leading and one trailing quote character."""
    return QUOTES_RE.sub('', value)


def coerce(value: str) -> bool | int | float | str:
    """Type a scalar: booleans, then numbers, then quoted/unquoted strings."""
    if value == 'true':
        return True
    if value == 'false':
        return False
    if NUMBER_RE.match(value):
        return int(value) if INT_RE.match(value) else float(value)
    return _unquote(value)


def parse_block(block: str) -> MetadataMap:
    """Parse the inside of a frontmatter block into an ordered metadata map.

    Supports `key: value` scalars and `key:` followed by `  - item` lines.
    A key with an empty value and no items is not recorded.
    """
    metadata: MetadataMap = {}
    key = ''
    items: list[str] | None = None

    for line in block.split('\n'):
        key_match = KEY_RE.match(line)
        item_match = ITEM_RE.match(line)

        if key_match:
            if items and key:
                metadata[key] = items
            key = key_match.group(1)
            value = key_match.group(2).strip()
            if value == '':
                items = []
            else:
                metadata[key] = coerce(value)
                items = None
        elif item_match and items is not None:
            items.append(_unquote(item_match.group(1).strip()))

    if items and key:
        metadata[key] = items
    return metadata


def extract(text: str) -> Extracted:
    """Return (body, metadata); text without a leading block is all body."""
    m = FRONTMATTER_RE.match(text)
    if not m:
        return Extracted(text, {})
    return Extracted(text[m.end():], parse_block(m.group(1)))


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def serialize(metadata: MetadataMap) -> str:
    """Render a metadata map as a delimited block, including the trailing newline."""
    lines = ['---']
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            lines.append(f'{key}:')
            lines.extend(f'  - {item}' for item in value)
        elif isinstance(value, str) and ':' in value:
            lines.append(f'{key}: "{value}"')
        else:
            lines.append(f'{key}: {_render_scalar(value)}')
    lines.append('---')
    lines.append('')
    return '\n'.join(lines)


def merge(text: str, updates: MetadataMap) -> str:
    """Overlay updates onto the frontmatter of text; the body is kept byte for byte."""
    body, metadata = extract(text)
    merged = {**metadata, **updates}
    if not any(v is not None for v in merged.values()):
        return text
    return serialize(merged) + body
