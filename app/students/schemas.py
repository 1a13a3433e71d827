"""Pydantic schemas for students."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StudentPayload(BaseModel):
    """Body of POST and PUT requests.

    Every field is optional at the schema level so that missing required
    fields are reported by the service as a validation error (400) rather
    than by FastAPI. Strings are trimmed and empty strings become None.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    student_code: Optional[str] = Field(None, max_length=50)
    full_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    dob: Optional[str] = Field(None, description="Date of birth (YYYY-MM-DD)")
    class_name: Optional[str] = Field(None, max_length=100)

    @field_validator("student_code", "full_name", "email", "dob", "class_name")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    def to_params(self) -> dict:
        """SQL parameters for INSERT/UPDATE statements."""
        return {
            "student_code": self.student_code,
            "full_name": self.full_name,
            "email": self.email,
            "dob": self.dob,
            "class_name": self.class_name,
        }


class StudentResponse(BaseModel):
    """Schema for student response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_code: str
    full_name: str
    email: Optional[str] = None
    dob: Optional[date] = None
    class_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DeleteResponse(BaseModel):
    ok: bool = True
