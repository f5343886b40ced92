# =============================================================================
# File: profilesync/utils/uuid_utils.py
# Description: Identifier generation for operations and audit entries
# =============================================================================
# UUIDv7 (RFC 9562) is time-sortable, which keeps audit rows in creation
# order on the primary index. Interpreters older than 3.14 ship no uuid7;
# uuid4 is used there.
# =============================================================================

import uuid

_uuid_factory = getattr(uuid, "uuid7", uuid.uuid4)

OPERATION_ID_PREFIX = "sync_"


def generate_uuid_str() -> str:
    """New UUID as string (v7 where available)."""
    return str(_uuid_factory())


def generate_operation_id() -> str:
    """Globally unique operation id, e.g. 'sync_0192f5e0-...'."""
    return f"{OPERATION_ID_PREFIX}{generate_uuid_str()}"
