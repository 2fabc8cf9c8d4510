from sqlalchemy import Column, String, Integer, Text, Time, JSON, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)

    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)

    credits = Column(Integer, nullable=False, default=3)
    lecture_hours = Column(Integer, nullable=False, default=3)
    tutorial_hours = Column(Integer, nullable=False, default=0)
    practical_hours = Column(Integer, nullable=False, default=0)
    self_study_hours = Column(Integer, nullable=False, default=3)
    max_students = Column(Integer, nullable=False, default=30)

    # weekly window: ["Monday", "Wednesday"] + start/end time of day
    days = Column(JSON, nullable=False, default=list)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    semester = Column(String(20))
    room_number = Column(String(50))
    status = Column(String(20), nullable=False, default="active")

    instructor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # relationship
    instructor = relationship("User")
    enrollments = relationship("Enrollment", back_populates="course")
