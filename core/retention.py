# ARQUIVO: core/retention.py
import asyncio
from typing import List

from core.logger import get_logger
from core.persister import FeedPersister
from core.scheduler import RunOutcome, RunStatus

logger = get_logger("RetentionJob")

DEFAULT_DAYS_TO_KEEP = 15


class RetentionJob:
    """
    Limpeza diária: chama o procedimento remoto 'cleanup_old_<feed>_data'
    de cada tabela e consolida um relatório único.
    """

    def __init__(self, persisters: List[FeedPersister], days_to_keep: int = DEFAULT_DAYS_TO_KEEP):
        self.persisters = persisters
        self.days_to_keep = days_to_keep

    async def _cleanup_one(self, persister: FeedPersister) -> dict:
        logger.info(f"  🧹 Limpando {persister.feed.label}...")
        try:
            result = await asyncio.to_thread(persister.cleanup_old_data, self.days_to_keep)
        except Exception as e:
            logger.error(f"     ❌ Erro limpando {persister.feed.label}: {e}")
            result = {"success": False, "message": str(e), "deleted_count": 0}

        result["table"] = persister.feed.table_name
        return result

    async def run(self) -> RunOutcome:
        logger.info(f"📊 Removendo dados com mais de {self.days_to_keep} dias...")
        results = await asyncio.gather(*(self._cleanup_one(p) for p in self.persisters))

        succeeded = [r for r in results if r["success"]]
        total_deleted = sum(r["deleted_count"] for r in succeeded)

        if results and len(succeeded) == len(results):
            status = RunStatus.SUCCESS
        elif succeeded:
            status = RunStatus.PARTIAL_SUCCESS
        else:
            status = RunStatus.FAILED

        logger.info(f"📊 Total de registros removidos: {total_deleted}")
        for r in results:
            if r["success"]:
                logger.info(f"   ✓ {r['table']}: {r['deleted_count']} registros removidos")
            else:
                logger.warning(f"   ✗ {r['table']}: {r['message']}")

        return RunOutcome(
            status=status,
            details={
                "days_to_keep": self.days_to_keep,
                "total_deleted": total_deleted,
                "tables": [
                    {"table": r["table"], "success": r["success"], "deleted_count": r["deleted_count"], "message": r["message"]}
                    for r in results
                ],
            },
        )
