"""Hand-off of the last job sent from the web app to the Tekmetric tab."""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from helper_engine.config.settings import LAST_JOB_KEY, LAST_JOB_TIMESTAMP_KEY
from helper_engine.src.store import ConfigStore


class PendingJobCache:
    def __init__(self, store: ConfigStore):
        self.store = store

    def store_job(self, job_data: dict) -> str:
        timestamp = datetime.now(timezone.utc).isoformat()
        self.store.set(LAST_JOB_KEY, job_data)
        self.store.set(LAST_JOB_TIMESTAMP_KEY, timestamp)
        logger.info("Pending job stored")
        return timestamp

    def get(self) -> tuple[Optional[dict], Optional[str]]:
        return self.store.get(LAST_JOB_KEY), self.store.get(LAST_JOB_TIMESTAMP_KEY)

    def clear(self) -> None:
        self.store.delete(LAST_JOB_KEY)
        logger.info("Pending job cleared")
