import asyncio

from core.env import load_config
from core.factory import FeedServiceFactory
from core.logger import get_logger
from core.scheduler import RunStatus

logger = get_logger("WorkerCleanup")


async def run_cleanup() -> RunStatus:
    logger.info("🧹 Iniciando Worker de Limpeza...")

    runtime = FeedServiceFactory.build(load_config())
    status = await runtime.cleanup_job.trigger_manual_run()

    logger.info(f"✅ Worker finalizado ({status.value if status else 'ignorado'}).")
    return status


if __name__ == "__main__":
    asyncio.run(run_cleanup())
