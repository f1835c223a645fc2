from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable

from dna_intake.core.utils import safe_uuid, utc_now_iso


SCHEMA_VERSION = 2


class Database:
    def __init__(self, db_path: Path) -> None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self.conn = sqlite3.connect(db_path, timeout=30)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode = WAL")
        self.conn.execute("PRAGMA synchronous = NORMAL")
        self.conn.execute("PRAGMA busy_timeout = 5000")
        self._migrate()

    def close(self) -> None:
        self.conn.close()

    def _migrate(self) -> None:
        cur = self.conn.execute("PRAGMA user_version")
        version = cur.fetchone()[0]
        if version < 1:
            self.conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS genetic_variants (
                    user_id TEXT NOT NULL,
                    rsid TEXT NOT NULL,
                    genotype TEXT NOT NULL,
                    data_source TEXT NOT NULL,
                    uploaded_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_genetic_variants_user_rsid
                    ON genetic_variants(user_id, rsid);
                """
            )

        if version < 2:
            self.conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS genetic_reports (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    data_source TEXT NOT NULL,
                    stored_variants INTEGER NOT NULL,
                    annotated_variants INTEGER NOT NULL,
                    clinically_relevant_variants INTEGER NOT NULL,
                    kb_version TEXT NOT NULL,
                    generated_at TEXT NOT NULL
                );
                """
            )

        if version < SCHEMA_VERSION:
            self.conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            self.conn.commit()

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()

    def delete_user_variants(self, user_id: str, *, commit: bool = True) -> int:
        cur = self.conn.execute("DELETE FROM genetic_variants WHERE user_id = ?", (user_id,))
        if commit:
            self.conn.commit()
        return cur.rowcount

    def insert_variants(self, rows: Iterable[tuple], *, commit: bool = True) -> int:
        cur = self.conn.executemany(
            "INSERT INTO genetic_variants (user_id, rsid, genotype, data_source, uploaded_at)"
            " VALUES (?, ?, ?, ?, ?)",
            rows,
        )
        if commit:
            self.conn.commit()
        return cur.rowcount

    def count_user_variants(self, user_id: str) -> int:
        cur = self.conn.execute(
            "SELECT COUNT(*) AS total FROM genetic_variants WHERE user_id = ?",
            (user_id,),
        )
        row = cur.fetchone()
        return int(row["total"]) if row else 0

    def get_user_variants(self, user_id: str) -> list[dict]:
        cur = self.conn.execute(
            "SELECT rsid, genotype, data_source FROM genetic_variants WHERE user_id = ? ORDER BY rowid",
            (user_id,),
        )
        return [dict(row) for row in cur.fetchall()]

    def get_user_rsids(self, user_id: str) -> set[str]:
        cur = self.conn.execute(
            "SELECT DISTINCT rsid FROM genetic_variants WHERE user_id = ?",
            (user_id,),
        )
        return {row["rsid"] for row in cur.fetchall()}

    def add_report(
        self,
        *,
        user_id: str,
        data_source: str,
        stored_variants: int,
        annotated_variants: int,
        clinically_relevant_variants: int,
        kb_version: str,
        commit: bool = True,
    ) -> dict:
        report = {
            "id": safe_uuid(),
            "user_id": user_id,
            "data_source": data_source,
            "stored_variants": stored_variants,
            "annotated_variants": annotated_variants,
            "clinically_relevant_variants": clinically_relevant_variants,
            "kb_version": kb_version,
            "generated_at": utc_now_iso(),
        }
        self.conn.execute(
            """
            INSERT INTO genetic_reports (
                id, user_id, data_source, stored_variants, annotated_variants,
                clinically_relevant_variants, kb_version, generated_at
            )
            VALUES (:id, :user_id, :data_source, :stored_variants, :annotated_variants,
                    :clinically_relevant_variants, :kb_version, :generated_at)
            """,
            report,
        )
        if commit:
            self.conn.commit()
        return report

    def get_latest_report(self, user_id: str) -> dict | None:
        cur = self.conn.execute(
            """
            SELECT id, user_id, data_source, stored_variants, annotated_variants,
                   clinically_relevant_variants, kb_version, generated_at
            FROM genetic_reports
            WHERE user_id = ?
            ORDER BY generated_at DESC, rowid DESC
            LIMIT 1
            """,
            (user_id,),
        )
        row = cur.fetchone()
        return dict(row) if row else None
