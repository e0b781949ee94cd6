from datetime import datetime, timezone
from classmint.extensions import db


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    # Imported students may not have signed in yet
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, unique=True)
    name = db.Column(db.String(200), nullable=False)
    points = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship("User")

    __table_args__ = (
        db.CheckConstraint("points >= 0", name="ck_student_points_nonneg"),
        db.Index("ix_student_name", "name"),
    )

    def __repr__(self):
        return f"<Student id={self.id} {self.name} points={self.points}>"
