# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra store for certificates."""

from uuid import UUID

from learnhub.core.database.store import CassandraStore

from .models import Certificate


class CertificateStore(CassandraStore):
    """Certificates keyed by (student, certification)."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._insert_if_absent = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.certificates
            (student_id, certification_id, id, issue_date)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._get = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates
            WHERE student_id = ? AND certification_id = ?
        """)

    async def insert_if_absent(self, certificate: Certificate) -> tuple[Certificate, bool]:
        """Store ``certificate`` unless one was already minted.

        Returns:
            (stored certificate, created)
        """
        result = await self._execute(
            self._insert_if_absent,
            [
                certificate.student_id,
                certificate.certification_id,
                certificate.id,
                certificate.issue_date,
            ],
        )
        if result.was_applied:
            return certificate, True
        return Certificate.from_row(result.one()), False

    async def get(self, student_id: UUID, certification_id: UUID) -> Certificate | None:
        """Get the certificate of a student for a certification."""
        result = await self._execute(self._get, [student_id, certification_id])
        row = result.one()
        return Certificate.from_row(row) if row else None
