from datetime import datetime, timezone
from classmint.extensions import db


class WalletType:
    ADMIN = "admin"  # teachers
    USER = "user"  # students


class Wallet(db.Model):
    __tablename__ = "wallets"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    address = db.Column(db.String(66), nullable=False)
    type = db.Column(db.String(10), nullable=False, default=WalletType.USER)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship("User")

    __table_args__ = (
        db.CheckConstraint("type IN ('admin', 'user')", name="ck_wallet_type"),
    )

    def __repr__(self):
        return f"<Wallet id={self.id} user_id={self.user_id} type={self.type}>"
