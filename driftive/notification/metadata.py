"""
Project metadata embedded in issue and pull request bodies.

Open issues and pull requests are driftive's only state store: each body
starts with an HTML-comment block naming the project and the kind of object,
e.g.

    <!--PROJECT_JSON_START--><!--{"project":{"dir":"infra/a"},"kind":"drift"}--><!--PROJECT_JSON_END-->

This module is the single place that writes and reads that block.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from ..models import KINDS

logger = logging.getLogger(__name__)

METADATA_START = "<!--PROJECT_JSON_START-->"
METADATA_END = "<!--PROJECT_JSON_END-->"
_COMMENT_OPEN = "<!--"
_COMMENT_CLOSE = "-->"


@dataclass(frozen=True)
class ObjectMetadata:
    project_dir: str
    kind: str


def encode_metadata(project_dir: str, kind: str) -> str:
    """Render the metadata block for a project / kind pair."""
    payload = json.dumps({"project": {"dir": project_dir}, "kind": kind}, separators=(",", ":"))
    return f"{METADATA_START}{_COMMENT_OPEN}{payload}{_COMMENT_CLOSE}{METADATA_END}"


def decode_metadata(body: Optional[str]) -> Optional[ObjectMetadata]:
    """
    Read the metadata block from an issue or pull request body.

    Returns:
        The metadata, or None if the body has no block, the JSON is malformed,
        or the block does not name a project directory and a known kind
    """
    if not body:
        return None

    start = body.find(METADATA_START)
    if start == -1:
        return None
    start += len(METADATA_START)
    end = body.find(METADATA_END, start)
    if end == -1:
        return None

    raw = body[start:end].replace(_COMMENT_OPEN, "").replace(_COMMENT_CLOSE, "")
    try:
        data = json.loads(raw)
        project_dir = data["project"]["dir"]
        kind = data["kind"]
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        logger.debug(f"Ignoring malformed project metadata: {e}")
        return None

    if not isinstance(project_dir, str) or not project_dir or kind not in KINDS:
        logger.debug(f"Ignoring project metadata with unexpected values: {raw}")
        return None
    return ObjectMetadata(project_dir=project_dir, kind=kind)
