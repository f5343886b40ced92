# =============================================================================
# File: profilesync/utils/content_hash.py
# Description: Stable hash of JSON-compatible values, used as idempotency key
# =============================================================================

import hashlib
import json
from typing import Any


def content_hash(*parts: Any) -> str:
    """SHA-256 hex of the canonical JSON encoding of parts."""
    encoded = json.dumps(parts, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
