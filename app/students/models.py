"""SQLAlchemy models for students."""

from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.sql import func
from db import Base


class Student(Base):
    """Student model."""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_code = Column(String(50), unique=True, nullable=False)
    full_name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    dob = Column(Date, nullable=True)
    class_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )
