from datetime import datetime, timezone
from classmint.extensions import db


class Seat(db.Model):
    __tablename__ = "seats"

    id = db.Column(db.Integer, primary_key=True)
    row = db.Column(db.Integer, nullable=False)
    column = db.Column(db.Integer, nullable=False)
    student = db.Column(db.String(255), nullable=True)  # email of the claiming user
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("row", "column", name="uq_seat_row_column"),
    )

    @property
    def occupied(self) -> bool:
        return self.student is not None

    def __repr__(self):
        return f"<Seat id={self.id} ({self.row}, {self.column}) student={self.student}>"
