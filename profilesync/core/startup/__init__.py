# profilesync/core/startup/__init__.py
# Startup phases used by profilesync.core.lifespan
