# =============================================================================
# File: profilesync/profile_sync/ports/__init__.py
# Description: Ports directory for the profile sync domain
# =============================================================================
# EMPTY - use direct imports:
#   from profilesync.profile_sync.ports.authoritative_store_port import AuthoritativeStorePort
#   from profilesync.profile_sync.ports.downstream_sync_port import DownstreamSyncPort
