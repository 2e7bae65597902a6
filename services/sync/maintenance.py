"""Housekeeping for short-lived records."""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from models.database.otp import OTP
from models.database.user import User
from shared.utils import config, setup_logging, utcnow

logger = setup_logging("maintenance")


def purge_stale_records(db: Session, now: datetime | None = None) -> dict[str, int]:
    """Delete expired OTPs and accounts left unverified past the TTL."""
    now = now or utcnow()
    ttl = timedelta(days=float(config.get_setting("scheduler.unverified_ttl_days", 15)))

    stale_ids = [
        user_id
        for (user_id,) in db.query(User.id).filter(
            User.is_verified.is_(False),
            User.created_at.isnot(None),
            User.created_at < now - ttl,
        )
    ]

    # Bulk deletes skip ORM cascades, so OTP rows go first
    otps = db.query(OTP).filter(OTP.expires_at <= now).delete(synchronize_session=False)
    users = 0
    if stale_ids:
        otps += db.query(OTP).filter(OTP.user_id.in_(stale_ids)).delete(synchronize_session=False)
        users = db.query(User).filter(User.id.in_(stale_ids)).delete(synchronize_session=False)
    db.commit()

    if otps or users:
        logger.info(f"Purged {otps} OTPs and {users} unverified users")
    return {"otps": otps, "users": users}
