from domestiq.extensions import db
from domestiq.models.base import PKType, TimestampMixin


class PushSubscription(TimestampMixin, db.Model):
    __tablename__ = "push_subscriptions"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    endpoint = db.Column(db.Text, nullable=False)
    p256dh = db.Column(db.String(255), nullable=False)
    auth = db.Column(db.String(255), nullable=False)
    user_agent = db.Column(db.String(255), nullable=True)

    user = db.relationship("User", back_populates="push_subscriptions")

    __table_args__ = (db.UniqueConstraint("user_id", "endpoint", name="uq_push_subscription_user_endpoint"),)

    def subscription_info(self):
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
