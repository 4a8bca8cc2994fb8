# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Node file codec: YAML frontmatter plus a proposition body.

A node file looks like::

    ---
    title: Honesty builds trust
    level: principle
    reduces_to:
    - 20260101120000-people-remember-lies
    status: Tentative/Hypothesis
    tags:
    - relationships
    created: '2026-01-01T12:00:00+00:00'
    ---

    **Proposition:** Being honest makes people trust you over time.

Parsing normalizes every loosely-typed field (bare strings, wiki-link
wrappers, comma separated tags) into one canonical shape before any
validation runs.
"""

from __future__ import annotations

import re
import secrets
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import yaml

from .constants import MAX_SLUG_LENGTH, STATUS_ALIASES, Level, Status, is_bedrock
from .exceptions import MalformedRecordError, StoreUnavailableError
from .models import MergedFromEntry, Node

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---\n?(.*)$", re.DOTALL)
_PROPOSITION_PREFIX_RE = re.compile(r"^\*\*Proposition:\*\*\s*", re.IGNORECASE)

# Frontmatter keys in the order they are written
FIELD_ORDER = (
    "title",
    "level",
    "reduces_to",
    "status",
    "tags",
    "created",
    "deduplication_group",
    "merged_from",
    "merged_reason",
    "merged_date",
    "merged_group_id",
    "merged_into",
    "original_path",
    "original_status",
    "trashed_on",
    "undone_merge",
)


# =============================================================================
# Slugs
# =============================================================================


def slugify(title: str) -> str:
    """Turn a title into the slug portion of a filename.

    Lowercases, turns whitespace and underscores into hyphens, strips anything
    outside ``[a-z0-9-]``, collapses hyphen runs and truncates. Titles with no
    latin characters fall back to 8 random hex characters.
    """
    slug = title.lower()
    slug = re.sub(r"[_\s]+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")[:MAX_SLUG_LENGTH]
    if not slug:
        return secrets.token_hex(4)
    return slug


def generate_filename(title: str, now: datetime | None = None) -> str:
    """Build ``YYYYMMDDHHMMSS-<slug>.md`` for a new node."""
    now = now or datetime.now(UTC)
    return f"{now.strftime('%Y%m%d%H%M%S')}-{slugify(title)}.md"


def filename_to_slug(filename: str) -> str:
    return filename[:-3] if filename.endswith(".md") else filename


# =============================================================================
# Normalization
# =============================================================================


def clean_ref(ref: str) -> str:
    """Strip whitespace, ``[[ ]]`` wrappers and a ``.md`` suffix from a reference."""
    ref = ref.strip()
    if ref.startswith("[["):
        ref = ref[2:]
    if ref.endswith("]]"):
        ref = ref[:-2]
    return filename_to_slug(ref.strip())


def _flatten_refs(raw: list[Any]) -> list[str]:
    # Unquoted [[slug]] is a nested YAML list
    items: list[str] = []
    for item in raw:
        if isinstance(item, list):
            items.extend(_flatten_refs(item))
        elif item is not None:
            items.append(str(item))
    return items


def normalize_reduces_to(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        cleaned = clean_ref(raw)
        return [cleaned] if cleaned else []
    if not isinstance(raw, list):
        return []
    refs: list[str] = []
    for item in _flatten_refs(raw):
        cleaned = clean_ref(item)
        if cleaned and cleaned not in refs:
            refs.append(cleaned)
    return refs


def normalize_tags(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, list):
        items = [str(item) for item in raw]
    else:
        return []
    tags: list[str] = []
    for item in items:
        tag = item.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def normalize_created(raw: Any) -> datetime | None:
    """Coerce a YAML ``created`` value to an aware UTC datetime."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime(raw.year, raw.month, raw.day)
    else:
        try:
            value = datetime.fromisoformat(str(raw).strip())
        except ValueError:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_level(raw: Any) -> Level | None:
    try:
        return Level(str(raw or "").strip().lower())
    except ValueError:
        return None


def parse_status_value(raw: Any) -> Status | None:
    return STATUS_ALIASES.get(str(raw or "").strip().lower())


def _optional_str(raw: Any) -> str | None:
    if raw is None or raw == "":
        return None
    return str(raw)


# =============================================================================
# Documents
# =============================================================================


def split_document(text: str, path: str = "<memory>") -> tuple[dict[str, Any], str]:
    """Split raw file text into (frontmatter mapping, body)."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    match = _FRONTMATTER_RE.match(text)
    if not match:
        raise MalformedRecordError(path, "missing YAML frontmatter (--- delimiters)")
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise MalformedRecordError(path, f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise MalformedRecordError(path, "frontmatter is not a mapping")
    return data, match.group(2)


def extract_proposition(body: str) -> str:
    return _PROPOSITION_PREFIX_RE.sub("", body.strip(), count=1).strip()


def parse_node(text: str, path: Path) -> Node:
    """Parse the text of a node file into a Node.

    Raises:
        MalformedRecordError: Missing delimiters, bad YAML, or an unknown
            level/status value.
    """
    data, body = split_document(text, str(path))

    level = parse_level(data.get("level"))
    if level is None:
        raise MalformedRecordError(str(path), f"invalid level '{data.get('level')}'")

    # Bedrock is validated by definition; whatever the file says is ignored
    if is_bedrock(level):
        status = Status.VALIDATED
    else:
        status = parse_status_value(data.get("status"))
        if status is None:
            raise MalformedRecordError(str(path), f"invalid status '{data.get('status')}'")

    slug = filename_to_slug(path.name)
    merged_from = data.get("merged_from") or []
    undone = data.get("undone_merge")

    return Node(
        slug=slug,
        title=str(data["title"]) if data.get("title") else slug,
        level=level,
        status=status,
        reduces_to=normalize_reduces_to(data.get("reduces_to")),
        tags=normalize_tags(data.get("tags")),
        proposition=extract_proposition(body),
        created=normalize_created(data.get("created")),
        file_path=path,
        deduplication_group=_optional_str(data.get("deduplication_group")),
        merged_from=[MergedFromEntry.from_dict(e) for e in merged_from if isinstance(e, dict)],
        merged_reason=_optional_str(data.get("merged_reason")),
        merged_date=_optional_str(data.get("merged_date")),
        merged_group_id=_optional_str(data.get("merged_group_id")),
        merged_into=_optional_str(data.get("merged_into")),
        original_path=_optional_str(data.get("original_path")),
        original_status=_optional_str(data.get("original_status")),
        trashed_on=_optional_str(data.get("trashed_on")),
        undone_merge=undone if isinstance(undone, dict) else None,
    )


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise StoreUnavailableError(f"Cannot read node file '{path}': {e}", str(path)) from e


def parse_node_file(path: Path) -> Node:
    return parse_node(read_text(path), path)


def node_frontmatter(node: Node) -> dict[str, Any]:
    """Frontmatter mapping for a node, omitting unset optional fields."""
    data: dict[str, Any] = {
        "title": node.title,
        "level": str(node.level),
        "reduces_to": list(node.reduces_to),
        "status": str(node.status),
        "tags": list(node.tags),
    }
    optional: dict[str, Any] = {
        "created": node.created.isoformat() if node.created else None,
        "deduplication_group": node.deduplication_group,
        "merged_from": [entry.to_dict() for entry in node.merged_from] or None,
        "merged_reason": node.merged_reason,
        "merged_date": node.merged_date,
        "merged_group_id": node.merged_group_id,
        "merged_into": node.merged_into,
        "original_path": node.original_path,
        "original_status": node.original_status,
        "trashed_on": node.trashed_on,
        "undone_merge": node.undone_merge,
    }
    data.update({key: value for key, value in optional.items() if value is not None})
    return data


def render_document(data: dict[str, Any], body: str) -> str:
    """Serialize a frontmatter mapping and a raw body back into file text."""
    ordered = {key: data[key] for key in FIELD_ORDER if key in data}
    ordered.update({key: value for key, value in data.items() if key not in ordered})
    dumped = yaml.safe_dump(
        ordered,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=10_000,
    ).strip()
    return f"---\n{dumped}\n---\n{body}"


def render_node(node: Node) -> str:
    return render_document(node_frontmatter(node), f"\n**Proposition:** {node.proposition}\n")
