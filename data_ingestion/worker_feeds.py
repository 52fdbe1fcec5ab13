import asyncio

from core.env import load_config
from core.factory import FeedServiceFactory
from core.logger import get_logger
from core.scheduler import RunStatus

logger = get_logger("WorkerFeeds")


async def run_scheduler():
    """Sobe todos os jobs (feeds + limpeza) sem a API HTTP."""
    runtime = FeedServiceFactory.build(load_config())
    logger.info(f"🚀 Iniciando Worker de Feeds: {[f.key for f in runtime.feeds]}")
    try:
        await runtime.scheduler.run_forever()
    finally:
        await runtime.scheduler.stop()


async def run_single_feed(feed_key: str) -> bool:
    """Uma execução avulsa do pipeline de um feed (respeita a trava single-flight)."""
    runtime = FeedServiceFactory.build(load_config())
    service = runtime.get(feed_key)

    status = await service.job.trigger_manual_run()
    snapshot = service.job.state.snapshot()
    if snapshot["last_details"]:
        logger.info(f"📊 Resumo: {snapshot['last_details']}")
    return status == RunStatus.SUCCESS


if __name__ == "__main__":
    asyncio.run(run_scheduler())
