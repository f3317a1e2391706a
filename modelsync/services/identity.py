"""Identity resolution for bones and cubes whose spec omits an id."""

import hashlib
import re
from typing import Optional

from modelsync import config
from modelsync.errors import ModelSpecError

EXPLICIT_ID_FIX = "Set idPolicy to stable_path/hash or supply all ids."

_UNSAFE_CHARS = re.compile(r"[^a-z0-9_]+")


def sanitize_id(value: str) -> str:
    return _UNSAFE_CHARS.sub("_", value.lower()).strip("_")


def hash_text_to_hex(text: str, width: int = config.HASH_WIDTH) -> str:
    return hashlib.sha256(text.encode()).hexdigest()[:width]


def resolve_id(
    kind: str,
    spec_id: Optional[str],
    spec_name: Optional[str],
    parent_id: Optional[str],
    index: int,
    policy: str,
) -> str:
    """Return the id for a bone or cube spec.

    An explicit id always wins. Otherwise the id is derived from
    ``kind:parent:label`` where the label is the spec name or the positional
    ``<kind>_<index>``. The ``explicit`` policy refuses to derive anything.
    """
    if spec_id:
        return spec_id
    if policy == "explicit":
        raise ModelSpecError(
            f"{kind} id is required when idPolicy is explicit",
            fix=EXPLICIT_ID_FIX,
        )
    label = spec_name if spec_name is not None else f"{kind}_{index}"
    base = f"{kind}:{parent_id or 'root'}:{label}"
    if policy == "hash":
        return f"{kind}_{hash_text_to_hex(base)}"
    return sanitize_id(base) or f"{kind}_{hash_text_to_hex(base)}"
