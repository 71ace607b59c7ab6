"""SQLite implementation of the run repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import RunRecord, StepRecord
from .repository import RunRepository


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteRunRepository(RunRepository):
    """Persist run history using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                run_id TEXT PRIMARY KEY,
                workflow_id TEXT NOT NULL,
                workflow_name TEXT,
                status TEXT NOT NULL,
                started_at TEXT,
                completed_at TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS step_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT NOT NULL,
                step_id TEXT NOT NULL,
                tool_id TEXT NOT NULL,
                started_at TEXT,
                completed_at TEXT,
                status TEXT,
                output TEXT,
                error TEXT,
                UNIQUE (run_id, step_id)
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _run_from_row(row: sqlite3.Row, steps: list[StepRecord]) -> RunRecord:
        return RunRecord(
            run_id=row["run_id"],
            workflow_id=row["workflow_id"],
            workflow_name=row["workflow_name"] or "",
            status=row["status"],
            started_at=_parse_ts(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
            steps=steps,
        )

    # ------------------------------------------------------------------
    # Repository API
    async def create_run(
        self, run_id: str, workflow_id: str, workflow_name: str = ""
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO runs (run_id, workflow_id, workflow_name, status, started_at) VALUES (?, ?, ?, ?, ?)",
            run_id,
            workflow_id,
            workflow_name,
            "active",
            _now(),
        )

    async def mark_step_started(self, run_id: str, step_id: str, tool_id: str) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT OR IGNORE INTO step_history (run_id, step_id, tool_id, started_at, status) VALUES (?, ?, ?, ?, ?)",
            run_id,
            step_id,
            tool_id,
            _now(),
            "running",
        )

    async def mark_step_completed(
        self,
        run_id: str,
        step_id: str,
        status: str,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            UPDATE step_history
            SET completed_at = ?, status = ?, output = ?, error = ?
            WHERE run_id = ? AND step_id = ? AND completed_at IS NULL
            """,
            _now(),
            status,
            json.dumps(output, default=str) if output is not None else None,
            error,
            run_id,
            step_id,
        )

    async def mark_run_completed(self, run_id: str, status: str = "completed") -> None:
        await asyncio.to_thread(
            self._execute,
            "UPDATE runs SET status = ?, completed_at = ? WHERE run_id = ?",
            status,
            _now(),
            run_id,
        )

    def _load_steps(self, run_id: str) -> list[StepRecord]:
        rows = self._fetchall(
            "SELECT id, run_id, step_id, tool_id, started_at, completed_at, status, output, error FROM step_history WHERE run_id = ? ORDER BY id",
            run_id,
        )
        return [
            StepRecord(
                id=r["id"],
                run_id=r["run_id"],
                step_id=r["step_id"],
                tool_id=r["tool_id"],
                started_at=_parse_ts(r["started_at"]),
                completed_at=_parse_ts(r["completed_at"]),
                status=r["status"],
                output=json.loads(r["output"]) if r["output"] else None,
                error=r["error"],
            )
            for r in rows
        ]

    def _load_runs(self, query: str, *params: Any) -> list[RunRecord]:
        return [
            self._run_from_row(row, self._load_steps(row["run_id"]))
            for row in self._fetchall(query, *params)
        ]

    async def get_run(self, run_id: str) -> RunRecord | None:
        runs = await asyncio.to_thread(
            self._load_runs,
            "SELECT run_id, workflow_id, workflow_name, status, started_at, completed_at FROM runs WHERE run_id = ?",
            run_id,
        )
        return runs[0] if runs else None

    async def list_runs(self, workflow_id: str | None = None) -> list[RunRecord]:
        if workflow_id is None:
            return await asyncio.to_thread(
                self._load_runs,
                "SELECT run_id, workflow_id, workflow_name, status, started_at, completed_at FROM runs ORDER BY started_at",
            )
        return await asyncio.to_thread(
            self._load_runs,
            "SELECT run_id, workflow_id, workflow_name, status, started_at, completed_at FROM runs WHERE workflow_id = ? ORDER BY started_at",
            workflow_id,
        )
