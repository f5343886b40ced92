# =============================================================================
# File: tests/fakes/fake_pg_db.py
# Description: Fake of the pg_client `db` proxy for repository unit tests
# Pattern: Ports & Adapters - Fake/Stub adapter
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tests.fakes.call_recorder import CallRecorder


class FakePgDb(CallRecorder):
    """
    Records SQL and arguments; returns configured rows and command status.

    Usage:
        db = FakePgDb()
        db.execute_status = "UPDATE 0"
        db.fetch_rows = [row_dict, ...]
    """

    def __init__(self):
        super().__init__()
        self.execute_status: str = "INSERT 0 1"
        self.fetch_rows: List[Dict[str, Any]] = []
        self.fetchrow_result: Optional[Dict[str, Any]] = None

    def last_query(self, method: str) -> str:
        call = self.get_last_call(method)
        return call.args[0] if call else ""

    def last_args(self, method: str) -> tuple:
        call = self.get_last_call(method)
        return call.args[1:] if call else ()

    async def execute(self, query: str, *args: Any, timeout: Optional[float] = None) -> str:
        self._record_call("execute", query, *args)
        await self._before("execute")
        return self.execute_status

    async def fetch(self, query: str, *args: Any, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        self._record_call("fetch", query, *args)
        await self._before("fetch")
        return list(self.fetch_rows)

    async def fetchrow(self, query: str, *args: Any, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        self._record_call("fetchrow", query, *args)
        await self._before("fetchrow")
        return self.fetchrow_result
