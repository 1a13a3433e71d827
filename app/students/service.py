"""Business logic for students."""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from db import StudentPool, is_duplicate_key
from errors import Conflict, NotFound, ServerError, ValidationError
from students.schemas import StudentPayload

logger = logging.getLogger("student_backend.students")

STUDENT_COLUMNS = (
    "id, student_code, full_name, email, dob, class_name, created_at, updated_at"
)

LIKE_ESCAPE = "!"

_ID_RE = re.compile(r"[+-]?\d+", re.ASCII)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so `value` matches as a literal substring."""
    for ch in (LIKE_ESCAPE, "%", "_"):
        value = value.replace(ch, LIKE_ESCAPE + ch)
    return value


def parse_student_id(raw: Any) -> int:
    """Parse a path id; anything that is not an integer cannot match a row.

    Only plain ASCII digits with an optional sign are accepted, so forms
    such as "1_0" or non-ASCII digits never resolve to an id.
    """
    text = "" if raw is None else str(raw).strip()
    if not _ID_RE.fullmatch(text):
        raise NotFound()
    return int(text)


class StudentService:
    """Service class for student operations."""

    def __init__(self, pool: StudentPool):
        self.pool = pool

    def list_students(self, q: Optional[str] = None) -> List[Dict[str, Any]]:
        """All students ordered by id, optionally filtered by full_name substring."""
        q = (q or "").strip()
        try:
            if q:
                return self.pool.query(
                    f"""
                    SELECT {STUDENT_COLUMNS}
                    FROM students
                    WHERE full_name LIKE :pattern ESCAPE '{LIKE_ESCAPE}'
                    ORDER BY id ASC
                    """,
                    {"pattern": f"%{escape_like(q)}%"},
                )
            return self.pool.query(
                f"SELECT {STUDENT_COLUMNS} FROM students ORDER BY id ASC"
            )
        except SQLAlchemyError as e:
            logger.error("listing students failed", exc_info=True)
            raise ServerError.from_exception(e)

    def _fetch(self, student_id: int) -> Optional[Dict[str, Any]]:
        rows = self.pool.query(
            f"SELECT {STUDENT_COLUMNS} FROM students WHERE id = :id",
            {"id": student_id},
        )
        return rows[0] if rows else None

    def get_student(self, student_id: Any) -> Dict[str, Any]:
        """Get student by ID."""
        sid = parse_student_id(student_id)
        try:
            student = self._fetch(sid)
        except SQLAlchemyError as e:
            logger.error("fetching student %s failed", sid, exc_info=True)
            raise ServerError.from_exception(e)
        if not student:
            raise NotFound()
        return student

    @staticmethod
    def _validate(payload: Optional[StudentPayload]) -> StudentPayload:
        if payload is None or not payload.student_code or not payload.full_name:
            raise ValidationError()
        return payload

    def create_student(self, payload: Optional[StudentPayload]) -> Dict[str, Any]:
        """Create a new student and return the stored row."""
        payload = self._validate(payload)
        try:
            result = self.pool.execute(
                """
                INSERT INTO students (student_code, full_name, email, dob, class_name)
                VALUES (:student_code, :full_name, :email, :dob, :class_name)
                """,
                payload.to_params(),
            )
            student = self._fetch(result.insert_id)
            if not student:
                raise ServerError(error="inserted row could not be read back")
            return student
        except SQLAlchemyError as e:
            if is_duplicate_key(e):
                logger.warning("duplicate student_code %r", payload.student_code)
                raise Conflict()
            logger.error("creating student failed", exc_info=True)
            raise ServerError.from_exception(e)

    def update_student(
        self, student_id: Any, payload: Optional[StudentPayload]
    ) -> Dict[str, Any]:
        """Replace every mutable field of a student in one statement."""
        payload = self._validate(payload)
        sid = parse_student_id(student_id)
        params = payload.to_params()
        params["id"] = sid
        try:
            result = self.pool.execute(
                """
                UPDATE students
                SET student_code = :student_code,
                    full_name = :full_name,
                    email = :email,
                    dob = :dob,
                    class_name = :class_name,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = :id
                """,
                params,
            )
            if result.affected_rows == 0:
                raise NotFound()
            student = self._fetch(sid)
            if not student:
                raise NotFound()
            return student
        except SQLAlchemyError as e:
            if is_duplicate_key(e):
                logger.warning("duplicate student_code %r", payload.student_code)
                raise Conflict()
            logger.error("updating student %s failed", sid, exc_info=True)
            raise ServerError.from_exception(e)

    def delete_student(self, student_id: Any) -> Dict[str, bool]:
        """Delete a student by id."""
        sid = parse_student_id(student_id)
        try:
            result = self.pool.execute(
                "DELETE FROM students WHERE id = :id", {"id": sid}
            )
        except SQLAlchemyError as e:
            logger.error("deleting student %s failed", sid, exc_info=True)
            raise ServerError.from_exception(e)
        if result.affected_rows == 0:
            raise NotFound()
        return {"ok": True}
