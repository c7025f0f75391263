import json
from concurrent.futures import ThreadPoolExecutor

from flask import current_app
from pywebpush import WebPushException, webpush
from sqlalchemy.exc import SQLAlchemyError

from domestiq.errors import AppError
from domestiq.extensions import db
from domestiq.models import PushSubscription

# Push services answer 404/410 once a browser subscription is gone for good.
STALE_STATUS_CODES = {404, 410}


def _empty_result():
    return {"sent": 0, "failed": 0}


class PushService:
    @staticmethod
    def is_configured():
        config = current_app.config
        return bool(config.get("VAPID_PUBLIC_KEY") and config.get("VAPID_PRIVATE_KEY"))

    @staticmethod
    def subscribe(user_id, endpoint, p256dh, auth, user_agent=None):
        if not endpoint or not p256dh or not auth:
            raise AppError("Missing subscription data: endpoint, keys.p256dh, keys.auth", 400)

        subscription = PushSubscription.query.filter_by(user_id=user_id, endpoint=endpoint).first()
        if subscription:
            subscription.p256dh = p256dh
            subscription.auth = auth
            subscription.user_agent = user_agent
        else:
            subscription = PushSubscription(
                user_id=user_id,
                endpoint=endpoint,
                p256dh=p256dh,
                auth=auth,
                user_agent=user_agent,
            )
            db.session.add(subscription)
        db.session.commit()
        return subscription

    @staticmethod
    def unsubscribe(user_id, endpoint):
        removed = PushSubscription.query.filter_by(user_id=user_id, endpoint=endpoint).delete(
            synchronize_session=False
        )
        db.session.commit()
        return removed

    @staticmethod
    def _deliver(subscription_info, data, private_key, claims, logger):
        """Returns ``(delivered, status_code)`` and never raises."""
        try:
            # pywebpush writes aud/exp into the claims dict, so each call gets its own.
            webpush(
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=private_key,
                vapid_claims=dict(claims),
            )
            return True, None
        except WebPushException as exc:
            status_code = getattr(exc.response, "status_code", None)
            logger.info("Push to %s rejected (%s)", subscription_info["endpoint"][:60], status_code)
            return False, status_code
        except Exception as exc:
            logger.warning("Push to %s failed: %s", subscription_info["endpoint"][:60], exc)
            return False, None

    @staticmethod
    def send_to_user(user_id, payload):
        """Fan a ``{title, body, url?, tag?}`` payload out to every device of a user.

        Deliveries run concurrently and settle independently. Subscriptions the
        push service reports as gone are deleted. Returns ``{"sent", "failed"}``.
        """
        logger = current_app.logger
        if not PushService.is_configured():
            logger.warning("VAPID keys not configured, skipping push notification")
            return _empty_result()

        try:
            subscriptions = PushSubscription.query.filter_by(user_id=user_id).all()
        except SQLAlchemyError as exc:
            logger.error("Could not load push subscriptions for user %s: %s", user_id, exc)
            return _empty_result()
        if not subscriptions:
            return _empty_result()

        config = current_app.config
        data = json.dumps({key: value for key, value in payload.items() if value is not None})
        claims = {"sub": config["VAPID_SUBJECT"]}
        private_key = config["VAPID_PRIVATE_KEY"]
        jobs = [(subscription.id, subscription.subscription_info()) for subscription in subscriptions]

        max_workers = max(1, min(len(jobs), int(config.get("PUSH_MAX_WORKERS", 8))))
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(
                pool.map(lambda job: PushService._deliver(job[1], data, private_key, claims, logger), jobs)
            )

        sent = 0
        failed = 0
        stale_ids = []
        for (subscription_id, _info), (delivered, status_code) in zip(jobs, outcomes):
            if delivered:
                sent += 1
                continue
            failed += 1
            if status_code in STALE_STATUS_CODES:
                stale_ids.append(subscription_id)

        if stale_ids:
            try:
                PushSubscription.query.filter(PushSubscription.id.in_(stale_ids)).delete(synchronize_session=False)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                logger.error("Could not remove stale push subscriptions %s: %s", stale_ids, exc)

        return {"sent": sent, "failed": failed}

    @staticmethod
    def send_to_users(user_ids, payload):
        totals = _empty_result()
        for user_id in user_ids:
            result = PushService.send_to_user(user_id, payload)
            totals["sent"] += result["sent"]
            totals["failed"] += result["failed"]
        return totals
