"""Minimal YAML front-matter reading for entity files."""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import Any

import yaml

from backlog_cli.errors import ParseError

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"

_FILENAME_ID = re.compile(r"^((?:task|doc|decision)-\d+(?:\.\d+)*)", re.IGNORECASE)


def split_frontmatter(content: str, *, source: str = "<memory>") -> tuple[dict[str, Any], str]:
    """Split ``content`` into (front matter mapping, body).

    Raises:
        ParseError: If the header is missing, unterminated or not a mapping.
    """
    text = content.lstrip("\ufeff")
    lines = text.splitlines()
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        raise ParseError(source, "missing front matter")

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            header = "\n".join(lines[1:index])
            body = "\n".join(lines[index + 1:]).strip("\n")
            break
    else:
        raise ParseError(source, "unterminated front matter")

    try:
        data = yaml.safe_load(header) if header.strip() else {}
    except yaml.YAMLError as exc:
        raise ParseError(source, f"invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ParseError(source, "front matter is not a mapping")
    return data, body


def id_from_filename(path: str) -> str | None:
    """Extract ``task-3`` from ``backlog/tasks/task-3 - Title.md``."""
    match = _FILENAME_ID.match(PurePosixPath(path).name)
    return match.group(1).lower() if match else None


def parse_entity_header(content: str, *, source: str) -> dict[str, Any]:
    """Parse an entity file and return its fields, including ``id``, ``status`` and ``body``.

    The id encoded in the file name wins, since locations are keyed on it; the
    header ``id`` is used only when the name carries none.
    """
    fields, body = split_frontmatter(content, source=source)
    header_id = str(fields.get("id") or "").strip().lower()
    entity_id = id_from_filename(source) or header_id
    if not entity_id:
        raise ParseError(source, "no entity id in header or file name")
    if header_id and header_id != entity_id:
        logger.debug("%s: header id %s differs from file name id %s", source, header_id, entity_id)
    fields["id"] = entity_id
    fields["status"] = str(fields.get("status") or "")
    fields["body"] = body
    return fields


__all__ = [
    "FRONTMATTER_DELIMITER",
    "id_from_filename",
    "parse_entity_header",
    "split_frontmatter",
]
