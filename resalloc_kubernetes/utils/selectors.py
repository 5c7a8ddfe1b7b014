"""Parsing of ``KEY=VALUE`` label and node-selector entries."""

from typing import Dict, Iterable, List, Mapping

import structlog

from ..models.errors import InvalidRequest

logger = structlog.get_logger(__name__)


def split_pair(entry: str):
    """Split ``entry`` into ``(key, value)`` or return ``None``.

    An entry is valid only when it holds exactly one ``=`` with non-empty
    text on both sides.
    """
    key, sep, value = entry.partition("=")
    if not sep or not key or not value or "=" in value:
        return None
    return key, value


def parse_pairs(entries: Iterable[str], strict: bool = False) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` entries into a mapping.

    Malformed entries are dropped unless ``strict`` is set, in which case
    they raise ``InvalidRequest``. A repeated key keeps its last value.
    """
    pairs: Dict[str, str] = {}
    for entry in entries:
        pair = split_pair(entry)
        if pair is None:
            if strict:
                raise InvalidRequest(
                    f"Expected an entry in the format 'NAME=VALUE', got '{entry}'"
                )
            logger.warning("Dropping malformed KEY=VALUE entry", entry=entry)
            continue
        key, value = pair
        pairs[key] = value
    return pairs


def format_pairs(mapping: Mapping[str, str]) -> List[str]:
    """Render a mapping back into sorted ``KEY=VALUE`` entries."""
    return [f"{key}={value}" for key, value in sorted(mapping.items())]
