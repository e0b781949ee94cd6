from datetime import datetime, timezone
from classmint.extensions import db


class Classroom(db.Model):
    __tablename__ = "classrooms"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey("teacher_profiles.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    teacher = db.relationship("TeacherProfile", back_populates="classrooms")
    enrolments = db.relationship("ClassroomStudent", back_populates="classroom", cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint("teacher_id", "name", name="uq_classroom_teacher_name"),
    )


class ClassroomStudent(db.Model):
    __tablename__ = "classroom_students"

    classroom_id = db.Column(db.Integer, db.ForeignKey("classrooms.id"), primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), primary_key=True)
    enrolled_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    classroom = db.relationship("Classroom", back_populates="enrolments")
    student = db.relationship("Student")
