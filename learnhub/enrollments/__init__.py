"""Unit enrollments.

Provides:
- Idempotent enrollment in courses, certifications and learning paths
- Best-effort cascade to member courses and lesson progress rows
- Cached enrollment progress refreshed after lesson completions
"""

from .models import ENROLLMENTS_TABLES_CQL, EnrollmentRecord


__all__ = [
    "ENROLLMENTS_TABLES_CQL",
    "EnrollmentRecord",
]
