"""Database models for the learning catalog.

The catalog is authored elsewhere; this service only reads it. Hierarchy:

- Course / Certification -> ordered modules -> ordered lessons
- LearningPath -> ordered member courses (no modules of its own)

Learning units form a tagged union (``Course | Certification |
LearningPath``). Each variant answers the same two questions for the
enrollment cascade: which member units it has and which lessons it owns
directly.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from learnhub.utils.timeutils import to_date


class UnitKind(str, Enum):
    """Enrollable unit variants."""

    COURSE = "course"
    CERTIFICATION = "certification"
    PATH = "path"


@dataclass(frozen=True)
class UnitRef:
    """Reference to an enrollable unit: (kind, id)."""

    kind: UnitKind
    id: UUID

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Units of every kind, looked up by (kind, id)
UNITS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.units (
    unit_kind TEXT,
    unit_id UUID,
    title TEXT,
    description TEXT,
    skills LIST<TEXT>,
    PRIMARY KEY ((unit_kind, unit_id))
)
"""

# Modules of a course or certification, in module_order
UNIT_MODULES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.unit_modules (
    unit_kind TEXT,
    unit_id UUID,
    module_order INT,
    module_id UUID,
    title TEXT,
    PRIMARY KEY ((unit_kind, unit_id), module_order, module_id)
) WITH CLUSTERING ORDER BY (module_order ASC, module_id ASC)
"""

# Lesson ids of a module, in lesson_order
MODULE_LESSONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.module_lessons (
    module_id UUID,
    lesson_order INT,
    lesson_id UUID,
    PRIMARY KEY (module_id, lesson_order, lesson_id)
) WITH CLUSTERING ORDER BY (lesson_order ASC, lesson_id ASC)
"""

# Full lesson, with a pointer back to the unit owning it
LESSONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    lesson_id UUID PRIMARY KEY,
    module_id UUID,
    unit_kind TEXT,
    unit_id UUID,
    title TEXT,
    lesson_order INT,
    duration INT,
    lesson_script TEXT,
    scheduled_date DATE,
    owner_student_id UUID
)
"""

# Member courses of a learning path, in unit_order
PATH_COURSES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.path_courses (
    path_id UUID,
    unit_order INT,
    course_id UUID,
    PRIMARY KEY (path_id, unit_order, course_id)
) WITH CLUSTERING ORDER BY (unit_order ASC, course_id ASC)
"""

# Reverse lookup: learning paths containing a course
PATHS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.paths_by_course (
    course_id UUID,
    path_id UUID,
    PRIMARY KEY (course_id, path_id)
)
"""

# Personal-path lessons scheduled for a student, by day
SCHEDULED_LESSONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.scheduled_lessons (
    student_id UUID,
    scheduled_date DATE,
    lesson_order INT,
    lesson_id UUID,
    title TEXT,
    duration INT,
    module_id UUID,
    module_title TEXT,
    unit_id UUID,
    unit_title TEXT,
    PRIMARY KEY (student_id, scheduled_date, lesson_order, lesson_id)
) WITH CLUSTERING ORDER BY (scheduled_date ASC, lesson_order ASC, lesson_id ASC)
"""

CATALOG_TABLES_CQL = [
    UNITS_TABLE_CQL,
    UNIT_MODULES_TABLE_CQL,
    MODULE_LESSONS_TABLE_CQL,
    LESSONS_TABLE_CQL,
    PATH_COURSES_TABLE_CQL,
    PATHS_BY_COURSE_TABLE_CQL,
    SCHEDULED_LESSONS_TABLE_CQL,
]


# ==============================================================================
# Learning Unit Variants
# ==============================================================================


class Course:
    """Course: holds modules directly."""

    kind = UnitKind.COURSE

    def __init__(self, id: UUID, title: str = "", description: str | None = None):
        self.id = id
        self.title = title
        self.description = description

    @property
    def ref(self) -> UnitRef:
        return UnitRef(self.kind, self.id)

    def __repr__(self) -> str:
        return f"<Course {self.title!r} {self.id}>"


class Certification:
    """Certification: holds modules directly, issues a certificate."""

    kind = UnitKind.CERTIFICATION

    def __init__(
        self,
        id: UUID,
        title: str = "",
        description: str | None = None,
        skills: list[str] | None = None,
    ):
        self.id = id
        self.title = title
        self.description = description
        self.skills = list(skills or [])

    @property
    def ref(self) -> UnitRef:
        return UnitRef(self.kind, self.id)

    def __repr__(self) -> str:
        return f"<Certification {self.title!r} {self.id}>"


class LearningPath:
    """Learning path: holds member courses, no modules of its own."""

    kind = UnitKind.PATH

    def __init__(self, id: UUID, title: str = "", description: str | None = None):
        self.id = id
        self.title = title
        self.description = description

    @property
    def ref(self) -> UnitRef:
        return UnitRef(self.kind, self.id)

    def __repr__(self) -> str:
        return f"<LearningPath {self.title!r} {self.id}>"


LearningUnit = Course | Certification | LearningPath


def unit_from_row(row: Any) -> LearningUnit:
    """Build the right unit variant from a ``units`` row."""
    kind = UnitKind(row.unit_kind)
    if kind is UnitKind.CERTIFICATION:
        return Certification(
            id=row.unit_id,
            title=row.title or "",
            description=row.description,
            skills=getattr(row, "skills", None),
        )
    if kind is UnitKind.PATH:
        return LearningPath(id=row.unit_id, title=row.title or "", description=row.description)
    return Course(id=row.unit_id, title=row.title or "", description=row.description)


# ==============================================================================
# Lessons
# ==============================================================================


class Lesson:
    """Lesson entity.

    Attributes:
        id: Lesson UUID
        module_id: Owning module
        unit: Reference to the course/certification owning the module
        title: Lesson title
        lesson_order: Sort key inside the module
        duration: Estimated minutes
        lesson_script: Markdown-like script; ``## `` headings delimit segments
        scheduled_date: Day the lesson is planned for (personal paths only)
        owner_student_id: Student owning a personal-path lesson
    """

    def __init__(
        self,
        id: UUID,
        module_id: UUID,
        unit: UnitRef,
        title: str = "",
        lesson_order: int = 0,
        duration: int | None = None,
        lesson_script: str = "",
        scheduled_date: date | None = None,
        owner_student_id: UUID | None = None,
    ):
        self.id = id
        self.module_id = module_id
        self.unit = unit
        self.title = title
        self.lesson_order = lesson_order
        self.duration = duration
        self.lesson_script = lesson_script
        self.scheduled_date = scheduled_date
        self.owner_student_id = owner_student_id

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson instance from Cassandra row."""
        return cls(
            id=row.lesson_id,
            module_id=row.module_id,
            unit=UnitRef(UnitKind(row.unit_kind), row.unit_id),
            title=row.title or "",
            lesson_order=row.lesson_order or 0,
            duration=row.duration,
            lesson_script=row.lesson_script or "",
            scheduled_date=to_date(row.scheduled_date),
            owner_student_id=getattr(row, "owner_student_id", None),
        )

    def __repr__(self) -> str:
        return f"<Lesson {self.title!r} {self.id}>"


class ScheduledLesson:
    """Personal-path lesson as listed on a student's calendar."""

    def __init__(
        self,
        lesson_id: UUID,
        scheduled_date: date,
        lesson_order: int = 0,
        title: str = "",
        duration: int | None = None,
        module_id: UUID | None = None,
        module_title: str | None = None,
        unit_id: UUID | None = None,
        unit_title: str | None = None,
    ):
        self.lesson_id = lesson_id
        self.scheduled_date = scheduled_date
        self.lesson_order = lesson_order
        self.title = title
        self.duration = duration
        self.module_id = module_id
        self.module_title = module_title
        self.unit_id = unit_id
        self.unit_title = unit_title

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.scheduled_date, self.lesson_order)

    @classmethod
    def from_row(cls, row: Any) -> "ScheduledLesson":
        """Create ScheduledLesson instance from Cassandra row."""
        return cls(
            lesson_id=row.lesson_id,
            scheduled_date=to_date(row.scheduled_date),
            lesson_order=row.lesson_order or 0,
            title=row.title or "",
            duration=row.duration,
            module_id=row.module_id,
            module_title=row.module_title,
            unit_id=row.unit_id,
            unit_title=row.unit_title,
        )
