from datetime import datetime, timezone
from enum import Enum
from classmint.extensions import db


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Attendance(db.Model):
    __tablename__ = "attendance"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False)
    classroom_id = db.Column(db.Integer, db.ForeignKey("classrooms.id"), nullable=False)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=AttendanceStatus.PRESENT.value)
    marked_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    marked_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    student = db.relationship("Student")
    classroom = db.relationship("Classroom")

    __table_args__ = (
        db.UniqueConstraint("student_id", "classroom_id", "date", name="uq_attendance_student_class_day"),
        db.Index("ix_attendance_classroom_date", "classroom_id", "date"),
    )

    def __repr__(self):
        return f"<Attendance id={self.id} student_id={self.student_id} classroom_id={self.classroom_id} date={self.date} status={self.status}>"
