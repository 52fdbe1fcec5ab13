# core/factory.py
import dataclasses
from dataclasses import dataclass, field
from typing import Dict, List

from core.db import DatabaseManager
from core.feeds import FEEDS, FeedSpec
from core.fetcher import FeedFetcher
from core.logger import get_logger
from core.persister import FeedPersister
from core.pipeline import FeedPipeline
from core.retention import DEFAULT_DAYS_TO_KEEP, RetentionJob
from core.scheduler import CronSchedule, JobScheduler, SingleFlightJob

logger = get_logger("FeedServiceFactory")


@dataclass
class FeedService:
    """Tudo que um feed precisa em tempo de execução."""
    feed: FeedSpec
    persister: FeedPersister
    pipeline: FeedPipeline
    job: SingleFlightJob


@dataclass
class FeedRuntime:
    services: Dict[str, FeedService]
    retention: RetentionJob
    cleanup_job: SingleFlightJob
    scheduler: JobScheduler
    config: dict = field(default_factory=dict)

    def get(self, key_or_slug: str) -> FeedService:
        key = key_or_slug.replace("-", "_")
        if key not in self.services:
            raise KeyError(f"Feed desconhecido ou desabilitado: {key_or_slug}")
        return self.services[key]

    @property
    def feeds(self) -> List[FeedSpec]:
        return [service.feed for service in self.services.values()]


class FeedServiceFactory:
    @staticmethod
    def configure_feed(feed: FeedSpec, feed_config: dict) -> FeedSpec:
        """Aplica cadência/fuso do settings.yaml sobre a definição padrão do feed."""
        overrides = {k: feed_config[k] for k in ("cron", "timezone", "url") if feed_config.get(k)}
        return dataclasses.replace(feed, **overrides) if overrides else feed

    @staticmethod
    def build(config: dict, admin_db: DatabaseManager = None, public_db: DatabaseManager = None,
              transport=None) -> FeedRuntime:
        admin_db = admin_db or DatabaseManager(use_service_role=True)
        public_db = public_db or DatabaseManager(use_service_role=False)

        feeds_config = config.get("feeds", {}) or {}
        scheduler_config = config.get("scheduler", {}) or {}
        timeout = float((config.get("http") or {}).get("timeout_seconds", 20))
        run_on_start = bool(scheduler_config.get("run_on_start", True))

        services = {}
        for key, base_feed in FEEDS.items():
            feed_config = feeds_config.get(key, {}) or {}
            if not feed_config.get("enabled", True):
                logger.info(f"⏸️ Feed desabilitado via config: {key}")
                continue

            feed = FeedServiceFactory.configure_feed(base_feed, feed_config)
            persister = FeedPersister(feed, admin_db, public_db)
            pipeline = FeedPipeline(feed, FeedFetcher(feed, timeout=timeout, transport=transport), persister)
            job = SingleFlightJob(
                name=feed.label,
                action=pipeline.run,
                schedule=CronSchedule(feed.cron, feed.timezone),
                run_on_start=run_on_start,
            )
            services[key] = FeedService(feed=feed, persister=persister, pipeline=pipeline, job=job)

        # Retenção: roda sobre todas as tabelas, inclusive de feeds pausados
        retention_config = config.get("retention", {}) or {}
        all_persisters = [
            services[key].persister if key in services else FeedPersister(feed, admin_db, public_db)
            for key, feed in FEEDS.items()
        ]
        retention = RetentionJob(all_persisters, int(retention_config.get("days_to_keep", DEFAULT_DAYS_TO_KEEP)))
        cleanup_job = SingleFlightJob(
            name="Data Cleanup",
            action=retention.run,
            schedule=CronSchedule(retention_config.get("cron", "0 1 * * *"), retention_config.get("timezone", "UTC")),
        )

        scheduler = JobScheduler([s.job for s in services.values()] + [cleanup_job])
        return FeedRuntime(
            services=services,
            retention=retention,
            cleanup_job=cleanup_job,
            scheduler=scheduler,
            config=config,
        )
