import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.db.models.user import User
from app.utils.security import hash_password

logger = logging.getLogger(__name__)


def init_db(db: Session) -> None:
    """
    Run once at server start-up.

    Ensure at least one site administrator exists, so somebody can create
    the first groups.
    """
    if db.query(User).filter(User.is_admin.is_(True)).count() > 0:
        logger.info("Database already initialised – skipping bootstrap.")
        return

    logger.info("Initialising database with default values…")

    admin = db.query(User).filter(User.username == settings.bootstrap_admin_username).first()
    if admin:
        # existing account of that name is promoted rather than duplicated
        admin.is_admin = True
    else:
        admin = User(
            username=settings.bootstrap_admin_username,
            name="Administrator",
            hashed_password=hash_password(settings.bootstrap_admin_password),
            is_admin=True,
        )
    db.add(admin)
    db.commit()
    logger.info("Created site administrator: %s", admin.username)
