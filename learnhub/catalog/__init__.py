"""Read-only learning catalog.

Provides:
- Course, certification and learning path lookups
- Member-unit and lesson resolution per unit variant
- Lessons with their scripts and scheduling metadata
"""

from .models import (
    CATALOG_TABLES_CQL,
    Certification,
    Course,
    LearningPath,
    LearningUnit,
    Lesson,
    ScheduledLesson,
    UnitKind,
    UnitRef,
)


__all__ = [
    "CATALOG_TABLES_CQL",
    "Certification",
    "Course",
    "LearningPath",
    "LearningUnit",
    "Lesson",
    "ScheduledLesson",
    "UnitKind",
    "UnitRef",
]
