from datetime import datetime, timezone

from domestiq.extensions import db
from domestiq.models import Notification


class NotificationService:
    """In-app notification rows. Push delivery lives in PushService."""

    @staticmethod
    def notify(user_id, notification_type, title, message, data=None):
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            data=data or {},
        )
        db.session.add(notification)
        db.session.flush()
        return notification

    @staticmethod
    def unread_count(user_id):
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    @staticmethod
    def list_for_user(user_id, unread_only=False, limit=50):
        query = Notification.query.filter_by(user_id=user_id)
        if unread_only:
            query = query.filter_by(is_read=False)
        total = query.count()
        items = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
        return items, total

    @staticmethod
    def mark_all_read(user_id):
        updated = Notification.query.filter_by(user_id=user_id, is_read=False).update(
            {"is_read": True, "read_at": datetime.now(timezone.utc)}, synchronize_session=False
        )
        db.session.commit()
        return updated

    @staticmethod
    def mark_read(user_id, ids):
        # Scoped to the caller so foreign ids are silently skipped.
        updated = (
            Notification.query.filter_by(user_id=user_id)
            .filter(Notification.id.in_(ids))
            .update({"is_read": True, "read_at": datetime.now(timezone.utc)}, synchronize_session=False)
        )
        db.session.commit()
        return updated
