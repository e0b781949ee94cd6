from datetime import datetime, timezone
from classmint.extensions import db


class Nft(db.Model):
    """An award badge. Token and contract fields are cosmetic identifiers."""
    __tablename__ = "nfts"

    id = db.Column(db.Integer, primary_key=True)
    token_id = db.Column(db.String(64), nullable=False, index=True)
    contract_address = db.Column(db.String(66), nullable=False)
    # "metadata" is reserved on declarative classes
    award_metadata = db.Column("metadata", db.JSON, nullable=False, default=dict)
    image_url = db.Column(db.String(255), nullable=True)
    creator_wallet_id = db.Column(db.Integer, db.ForeignKey("wallets.id"), nullable=False, index=True)
    owner_wallet_id = db.Column(db.Integer, db.ForeignKey("wallets.id"), nullable=True, index=True)
    network = db.Column(db.String(32), nullable=False, default="testnet")
    transfer_key = db.Column(db.String(64), nullable=True, unique=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    creator_wallet = db.relationship("Wallet", foreign_keys=[creator_wallet_id])
    owner_wallet = db.relationship("Wallet", foreign_keys=[owner_wallet_id])

    @property
    def name(self) -> str:
        return (self.award_metadata or {}).get("name", "")

    @property
    def points(self) -> int:
        return int((self.award_metadata or {}).get("points", 0))

    def __repr__(self):
        return f"<Nft id={self.id} token_id={self.token_id} owner_wallet_id={self.owner_wallet_id}>"


class TransactionStatus:
    PENDING = "pending"
    COMPLETED = "completed"


class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    nft_id = db.Column(db.Integer, db.ForeignKey("nfts.id"), nullable=False, index=True)
    from_wallet_id = db.Column(db.Integer, db.ForeignKey("wallets.id"), nullable=False)
    to_wallet_id = db.Column(db.Integer, db.ForeignKey("wallets.id"), nullable=False, index=True)
    transaction_hash = db.Column(db.String(66), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TransactionStatus.PENDING)
    transfer_key = db.Column(db.String(64), nullable=True, unique=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    nft = db.relationship("Nft", backref=db.backref("transactions", order_by="Transaction.id"))
