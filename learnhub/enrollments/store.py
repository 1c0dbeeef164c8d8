# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra store for enrollment records."""

from datetime import datetime
from uuid import UUID

from learnhub.catalog.models import UnitRef
from learnhub.core.database.store import CassandraStore

from .models import EnrollmentRecord


class EnrollmentStore(CassandraStore):
    """Enrollment rows keyed by (student, unit_kind, unit_id)."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._insert_if_absent = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (student_id, unit_kind, unit_id, enrolled_at, progress,
             completed_at, certificate_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._get = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE student_id = ? AND unit_kind = ? AND unit_id = ?
        """)

        self._list_for_student = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments WHERE student_id = ?
        """)

        self._update_progress = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET progress = ?, completed_at = ?
            WHERE student_id = ? AND unit_kind = ? AND unit_id = ?
        """)

        self._set_certificate = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET certificate_id = ?
            WHERE student_id = ? AND unit_kind = ? AND unit_id = ?
        """)

    async def insert_if_absent(
        self, record: EnrollmentRecord
    ) -> tuple[EnrollmentRecord, bool]:
        """Insert ``record`` unless the (student, unit) row already exists.

        Returns:
            (stored record, created). When the row existed, the stored
            record is the existing one, untouched.
        """
        result = await self._execute(
            self._insert_if_absent,
            [
                record.student_id,
                record.unit_kind.value,
                record.unit_id,
                record.enrolled_at,
                record.progress,
                record.completed_at,
                record.certificate_id,
            ],
        )
        if result.was_applied:
            return record, True
        # A rejected LWT returns the current row
        return EnrollmentRecord.from_row(result.one()), False

    async def get(self, student_id: UUID, ref: UnitRef) -> EnrollmentRecord | None:
        """Get the enrollment of a student in a unit."""
        result = await self._execute(self._get, [student_id, ref.kind.value, ref.id])
        row = result.one()
        return EnrollmentRecord.from_row(row) if row else None

    async def list_for_student(self, student_id: UUID) -> list[EnrollmentRecord]:
        """All enrollments of a student."""
        rows = await self._execute(self._list_for_student, [student_id])
        return [EnrollmentRecord.from_row(row) for row in rows]

    async def update_progress(
        self,
        student_id: UUID,
        ref: UnitRef,
        progress: int,
        completed_at: datetime | None,
    ) -> None:
        """Overwrite the cached progress of an existing enrollment."""
        await self._execute(
            self._update_progress,
            [progress, completed_at, student_id, ref.kind.value, ref.id],
        )

    async def set_certificate(
        self, student_id: UUID, ref: UnitRef, certificate_id: str
    ) -> None:
        """Attach a minted certificate id to an enrollment."""
        await self._execute(
            self._set_certificate,
            [certificate_id, student_id, ref.kind.value, ref.id],
        )
