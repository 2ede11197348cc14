import logging
import time

from skydeal.core.config import settings
from skydeal.core.logging import setup_logging
from skydeal.db.session import get_db
from skydeal.deals.detection import DealDetectionService
from skydeal.notifications.newsletter import send_weekly_newsletter

logger = logging.getLogger("deal_jobs")

# Run in this order on every tick of the loop
SCHEDULED_JOBS = ("analyze", "reevaluate", "purge")
# newsletter is weekly and is triggered on its own (cron, --job newsletter)
ALL_JOBS = SCHEDULED_JOBS + ("newsletter",)


def run_job(name: str) -> None:
    with next(get_db()) as db:
        service = DealDetectionService(db)
        if name == "analyze":
            service.analyze_recent_flights()
        elif name == "reevaluate":
            service.reevaluate_existing_deals()
        elif name == "purge":
            removed = service.purge_expired_deals()
            logger.info("purge removed %d expired deals", removed)
        elif name == "newsletter":
            send_weekly_newsletter(db)
        else:
            raise ValueError(f"unknown job: {name}")


def run_jobs(names) -> None:
    for name in names:
        logger.info("job %s starting", name)
        try:
            run_job(name)
        except Exception:
            logger.exception("job %s failed", name)
            continue
        logger.info("job %s finished", name)


def main(once: bool = False, job: str | None = None) -> None:
    names = (job,) if job else SCHEDULED_JOBS
    logger.info("deal_jobs starting (once=%s, jobs=%s)", once, ",".join(names))

    while True:
        run_jobs(names)
        if once:
            return
        time.sleep(settings.DEAL_JOBS_INTERVAL_SECONDS)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--once", action="store_true")
    parser.add_argument("--job", choices=ALL_JOBS)
    args = parser.parse_args()

    setup_logging()
    main(once=args.once, job=args.job)
