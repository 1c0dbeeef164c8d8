# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Catalog read service.

Resolves unit references to units, their member units and their lessons.
Each unit variant has its own resolver for "member units" and "own
lessons"; callers such as the enrollment cascade stay variant-agnostic.
Lesson-id lists per unit are cached in Redis when available.
"""

import json
from collections.abc import Awaitable, Callable
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from redis.exceptions import RedisError

from learnhub.core.database.store import CassandraStore
from learnhub.core.exceptions import LessonNotFoundError, UnitNotFoundError
from learnhub.core.logging import get_logger
from learnhub.core.redis import unit_lessons_cache_key

from .models import (
    Course,
    LearningUnit,
    Lesson,
    ScheduledLesson,
    UnitKind,
    UnitRef,
    unit_from_row,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis


logger = get_logger(__name__)

MemberResolver = Callable[[LearningUnit], Awaitable[list[LearningUnit]]]
LessonResolver = Callable[[LearningUnit], Awaitable[list[UUID]]]


class CatalogService(CassandraStore):
    """Read-only access to courses, certifications, paths and lessons."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        cache_ttl_seconds: int = 300,
    ):
        """Initialize with Cassandra session and optional Redis cache."""
        self.redis = redis
        self.cache_ttl_seconds = cache_ttl_seconds
        super().__init__(session, keyspace)

        self._member_resolvers: dict[UnitKind, MemberResolver] = {
            UnitKind.COURSE: self._no_members,
            UnitKind.CERTIFICATION: self._no_members,
            UnitKind.PATH: self._path_member_courses,
        }
        self._lesson_resolvers: dict[UnitKind, LessonResolver] = {
            UnitKind.COURSE: self._module_lesson_ids,
            UnitKind.CERTIFICATION: self._module_lesson_ids,
            UnitKind.PATH: self._no_lessons,
        }

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_unit = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.units
            WHERE unit_kind = ? AND unit_id = ?
        """)

        self._get_unit_modules = self.session.prepare(f"""
            SELECT module_id, module_order FROM {self.keyspace}.unit_modules
            WHERE unit_kind = ? AND unit_id = ?
        """)

        self._get_module_lessons = self.session.prepare(f"""
            SELECT lesson_id, lesson_order FROM {self.keyspace}.module_lessons
            WHERE module_id = ?
        """)

        self._get_lesson = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lessons WHERE lesson_id = ?
        """)

        self._get_path_courses = self.session.prepare(f"""
            SELECT course_id, unit_order FROM {self.keyspace}.path_courses
            WHERE path_id = ?
        """)

        self._get_paths_by_course = self.session.prepare(f"""
            SELECT path_id FROM {self.keyspace}.paths_by_course
            WHERE course_id = ?
        """)

        self._get_scheduled_lessons = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.scheduled_lessons
            WHERE student_id = ? AND scheduled_date >= ? AND scheduled_date <= ?
        """)

    # ==========================================================================
    # Units
    # ==========================================================================

    async def find_unit(self, ref: UnitRef) -> LearningUnit | None:
        """Get a unit by reference, None if it does not exist."""
        result = await self._execute(self._get_unit, [ref.kind.value, ref.id])
        row = result.one()
        return unit_from_row(row) if row else None

    async def get_unit(self, ref: UnitRef) -> LearningUnit:
        """Get a unit by reference.

        Raises:
            UnitNotFoundError: If the reference does not resolve
        """
        unit = await self.find_unit(ref)
        if unit is None:
            raise UnitNotFoundError(f"{ref.kind.value.capitalize()} not found")
        return unit

    async def get_member_units(self, unit: LearningUnit) -> list[LearningUnit]:
        """Units enrolled alongside ``unit`` (a path's courses, in unit_order)."""
        return await self._member_resolvers[unit.kind](unit)

    async def get_own_lesson_ids(self, unit: LearningUnit) -> list[UUID]:
        """Lessons held by the unit's own modules, in module then lesson order."""
        return await self._lesson_resolvers[unit.kind](unit)

    async def get_unit_lesson_ids(self, unit: LearningUnit) -> list[UUID]:
        """Whole descendant lesson set (paths aggregate their member courses)."""
        cached = await self._cache_get(unit.ref)
        if cached is not None:
            return cached

        lesson_ids = list(await self.get_own_lesson_ids(unit))
        for member in await self.get_member_units(unit):
            lesson_ids.extend(await self.get_unit_lesson_ids(member))

        # A lesson reachable twice still counts once
        lesson_ids = list(dict.fromkeys(lesson_ids))
        await self._cache_set(unit.ref, lesson_ids)
        return lesson_ids

    async def get_paths_containing(self, course_id: UUID) -> list[UUID]:
        """Learning paths listing ``course_id`` as a member course."""
        rows = await self._execute(self._get_paths_by_course, [course_id])
        return [row.path_id for row in rows]

    async def _no_members(self, unit: LearningUnit) -> list[LearningUnit]:
        return []

    async def _no_lessons(self, unit: LearningUnit) -> list[UUID]:
        return []

    async def _path_member_courses(self, unit: LearningUnit) -> list[LearningUnit]:
        rows = await self._execute(self._get_path_courses, [unit.id])
        links = sorted(rows, key=lambda row: row.unit_order or 0)

        courses: list[LearningUnit] = []
        for link in links:
            course = await self.find_unit(UnitRef(UnitKind.COURSE, link.course_id))
            if course is None:
                logger.warning(
                    "path_course_missing",
                    path_id=str(unit.id),
                    course_id=str(link.course_id),
                )
                courses.append(Course(id=link.course_id))
                continue
            courses.append(course)
        return courses

    async def _module_lesson_ids(self, unit: LearningUnit) -> list[UUID]:
        modules = await self._execute(
            self._get_unit_modules, [unit.kind.value, unit.id]
        )
        lesson_ids: list[UUID] = []
        for module in sorted(modules, key=lambda row: row.module_order or 0):
            rows = await self._execute(self._get_module_lessons, [module.module_id])
            lesson_ids.extend(
                row.lesson_id
                for row in sorted(rows, key=lambda row: row.lesson_order or 0)
            )
        return lesson_ids

    # ==========================================================================
    # Lessons
    # ==========================================================================

    async def get_lesson(self, lesson_id: UUID) -> Lesson:
        """Get a lesson with its script and owning unit.

        Raises:
            LessonNotFoundError: If the lesson does not exist
        """
        result = await self._execute(self._get_lesson, [lesson_id])
        row = result.one()
        if row is None:
            raise LessonNotFoundError
        return Lesson.from_row(row)

    async def list_scheduled_lessons(
        self,
        student_id: UUID,
        start: date,
        end: date,
    ) -> list[ScheduledLesson]:
        """Personal-path lessons scheduled for a student between two days (inclusive)."""
        rows = await self._execute(self._get_scheduled_lessons, [student_id, start, end])
        lessons = [ScheduledLesson.from_row(row) for row in rows]
        lessons.sort(key=lambda lesson: lesson.sort_key)
        return lessons

    # ==========================================================================
    # Cache
    # ==========================================================================

    async def _cache_get(self, ref: UnitRef) -> list[UUID] | None:
        if not self.redis:
            return None
        try:
            cached = await self.redis.get(unit_lessons_cache_key(ref.kind.value, ref.id))
        except RedisError as e:
            logger.warning("catalog_cache_read_failed", unit=str(ref), error=str(e))
            return None
        if cached is None:
            return None
        return [UUID(value) for value in json.loads(cached)]

    async def _cache_set(self, ref: UnitRef, lesson_ids: list[UUID]) -> None:
        if not self.redis:
            return
        try:
            await self.redis.setex(
                unit_lessons_cache_key(ref.kind.value, ref.id),
                self.cache_ttl_seconds,
                json.dumps([str(lesson_id) for lesson_id in lesson_ids]),
            )
        except RedisError as e:
            logger.warning("catalog_cache_write_failed", unit=str(ref), error=str(e))
