from flask_login import UserMixin

from domestiq.extensions import db
from domestiq.models.base import PKType, TimestampMixin


class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(10), nullable=False, index=True, default="")
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(24), nullable=False, index=True)
    is_active_user = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    client_bookings = db.relationship(
        "Booking", back_populates="client", lazy="dynamic", foreign_keys="Booking.client_id"
    )
    worker_bookings = db.relationship(
        "Booking", back_populates="worker", lazy="dynamic", foreign_keys="Booking.worker_id"
    )
    notifications = db.relationship("Notification", back_populates="user", lazy="dynamic")
    push_subscriptions = db.relationship("PushSubscription", back_populates="user", lazy="dynamic")
    consents = db.relationship("ConsentRecord", back_populates="user", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
        }
