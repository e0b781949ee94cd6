from datetime import datetime, timezone
from classmint.extensions import db


class PointLedger(db.Model):
    __tablename__ = "point_ledger"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False)
    delta = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=True)
    source = db.Column(db.String(50), nullable=False, default="award")  # award|manual
    idempotency_key = db.Column(db.String(64), nullable=True, unique=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    student = db.relationship("Student", backref="ledger")

    __table_args__ = (
        db.CheckConstraint("delta > 0", name="ck_ledger_delta_positive"),
        db.Index("ix_ledger_student_id", "student_id"),
        db.Index("ix_ledger_created_at", "created_at"),
    )

# Helper: total points credited to a student

def student_ledger_total(session, student_id: int) -> int:
    total = session.execute(
        db.select(db.func.coalesce(db.func.sum(PointLedger.delta), 0)).where(PointLedger.student_id == student_id)
    ).scalar_one()
    return int(total)
