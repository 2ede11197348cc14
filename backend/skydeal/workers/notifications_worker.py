import logging
import time

from skydeal.core.config import settings
from skydeal.core.logging import setup_logging
from skydeal.db.session import get_db
from skydeal.notifications.dispatch import NotificationDispatcher
from skydeal.notifications.email_sender import MailTransport

logger = logging.getLogger("notifications_worker")


def drain_once(transport: MailTransport | None = None) -> int:
    with next(get_db()) as db:
        return NotificationDispatcher(db, transport).drain_pending(settings.NOTIFICATIONS_BATCH_SIZE)


def main(once: bool = False) -> None:
    logger.info("notifications_worker starting (once=%s)", once)

    while True:
        try:
            sent = drain_once()
            logger.info("drain sent %d notifications", sent)
        except Exception:
            logger.exception("worker loop crashed; sleeping then retrying")
            if once:
                return
            time.sleep(2)
            continue

        if once:
            return
        time.sleep(settings.NOTIFICATIONS_POLL_SECONDS)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--once", action="store_true")
    args = parser.parse_args()

    setup_logging()
    main(once=args.once)
