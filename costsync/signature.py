"""Content fingerprints for change detection.

A signature is the SHA-256 of the record serialized as canonical JSON
(sorted keys, compact separators). Two records with the same content get
the same signature regardless of key order or object identity, so a
logically unchanged record fetched again compares equal.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from costsync.errors import SignatureError
from costsync.models import Record

logger = logging.getLogger(__name__)


def canonical_json(data: Any) -> str:
    """Serialize data deterministically.

    Raises:
        SignatureError: On cyclic structures, non-JSON values or NaN/Infinity
    """
    try:
        return json.dumps(
            data,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise SignatureError(f"Record is not serializable: {e}") from e


def compute_signature(record: Record | dict[str, Any]) -> str:
    """Signature of a record; raises SignatureError when it cannot be built."""
    data = record.data if isinstance(record, Record) else record
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


def signature(record: Record | dict[str, Any]) -> str | None:
    """Signature of a record, or None when serialization fails.

    Callers treat None as "changed".
    """
    try:
        return compute_signature(record)
    except SignatureError as e:
        logger.warning(f"Could not build record signature: {e}")
        return None


def has_changed(new_signature: str | None, current_signature: str | None) -> bool:
    """Whether a candidate record must be committed over the current one."""
    if new_signature is None:
        return True
    return new_signature != current_signature
