"""
RouletteBot - Draw History Database Mixin
=========================================

Append-only draw log. Rows are never updated; sequence numbers come from
draw_sequences so they are never handed out twice for the same key.
"""

from typing import Dict, List, Optional

from src.services.roulette.errors import ContentionError
from src.services.roulette.models import DrawRecord, PendingDraw


def _row_to_record(row) -> DrawRecord:
    return DrawRecord(
        user_id=row["user_id"],
        pool_id=row["pool_id"],
        pool_version=row["pool_version"],
        entry_id=row["entry_id"],
        timestamp=row["timestamp"],
        sequence_no=row["sequence_no"],
    )


class HistoryMixin:
    """Mixin for draw history database operations."""

    def append_draw(
        self,
        draw: PendingDraw,
        expected_last_sequence: Optional[int] = None,
    ) -> DrawRecord:
        """
        Persist a draw and assign its sequence number.

        Counter bump and row insert happen in one BEGIN IMMEDIATE transaction:
        the record is either fully stored or not visible at all.

        Args:
            draw: The decided draw.
            expected_last_sequence: Sequence number of the newest record the
                decision was based on (0 for none). If another record was
                committed since, nothing is written.

        Raises:
            ContentionError: If ``expected_last_sequence`` is stale.
            PersistenceFailure: On storage errors.
        """
        with self._get_conn(immediate=True) as conn:
            if expected_last_sequence is not None:
                row = conn.execute("""
                    SELECT MAX(sequence_no) AS latest FROM draw_history
                    WHERE pool_id = ? AND user_id = ?
                """, (draw.pool_id, draw.user_id)).fetchone()
                latest = row["latest"] or 0
                if latest != expected_last_sequence:
                    raise ContentionError(
                        f"History for {draw.pool_id}/{draw.user_id} moved from "
                        f"#{expected_last_sequence} to #{latest}"
                    )

            row = conn.execute("""
                SELECT last_sequence_no FROM draw_sequences
                WHERE pool_id = ? AND user_id = ?
            """, (draw.pool_id, draw.user_id)).fetchone()
            sequence_no = (row["last_sequence_no"] if row else 0) + 1

            conn.execute("""
                INSERT INTO draw_sequences (pool_id, user_id, last_sequence_no)
                VALUES (?, ?, ?)
                ON CONFLICT (pool_id, user_id)
                    DO UPDATE SET last_sequence_no = excluded.last_sequence_no
            """, (draw.pool_id, draw.user_id, sequence_no))

            conn.execute("""
                INSERT INTO draw_history (
                    pool_id, user_id, sequence_no, pool_version, entry_id, timestamp
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, (
                draw.pool_id, draw.user_id, sequence_no,
                draw.pool_version, draw.entry_id, draw.timestamp
            ))

        return DrawRecord(
            user_id=draw.user_id,
            pool_id=draw.pool_id,
            pool_version=draw.pool_version,
            entry_id=draw.entry_id,
            timestamp=draw.timestamp,
            sequence_no=sequence_no,
        )

    def get_recent_draws(self, pool_id: str, user_id: str, limit: int) -> List[DrawRecord]:
        """Get a user's draws on a pool, most recent first."""
        if limit <= 0:
            return []
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT * FROM draw_history
                WHERE pool_id = ? AND user_id = ?
                ORDER BY sequence_no DESC
                LIMIT ?
            """, (pool_id, user_id, limit)).fetchall()
            return [_row_to_record(row) for row in rows]

    def get_draw_counts(
        self,
        pool_id: str,
        user_id: str,
        since: Optional[float] = None,
        until: Optional[float] = None,
    ) -> Dict[str, int]:
        """
        Count a user's draws per entry on a pool.

        Args:
            since: Inclusive lower bound (Unix timestamp), or None.
            until: Exclusive upper bound (Unix timestamp), or None.
        """
        query = """
            SELECT entry_id, COUNT(*) AS count FROM draw_history
            WHERE pool_id = ? AND user_id = ?
        """
        params: list = [pool_id, user_id]
        if since is not None:
            query += " AND timestamp >= ?"
            params.append(since)
        if until is not None:
            query += " AND timestamp < ?"
            params.append(until)
        query += " GROUP BY entry_id ORDER BY count DESC, entry_id ASC"

        with self._get_conn() as conn:
            rows = conn.execute(query, params).fetchall()
            return {row["entry_id"]: row["count"] for row in rows}
