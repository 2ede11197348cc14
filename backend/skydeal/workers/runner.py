from __future__ import annotations

import logging
import threading
import time

from skydeal.core.logging import setup_logging
from skydeal.workers import deal_jobs, notifications_worker

logger = logging.getLogger("worker_runner")


def _run_deal_jobs() -> None:
    deal_jobs.main(once=False)


def _run_notifications() -> None:
    notifications_worker.main(once=False)


def main() -> None:
    logger.info("worker_runner starting (deal jobs + notifications)")

    t1 = threading.Thread(target=_run_deal_jobs, name="deal-jobs", daemon=True)
    t2 = threading.Thread(target=_run_notifications, name="notifications", daemon=True)

    t1.start()
    t2.start()

    # Keep the main process alive
    while True:
        time.sleep(60)


if __name__ == "__main__":
    setup_logging()
    main()
