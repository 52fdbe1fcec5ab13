# ARQUIVO: core/pipeline.py
import asyncio

from core.extractor import ExtractionResult, TableExtractor
from core.feeds import FeedSpec
from core.fetcher import FeedFetcher
from core.logger import get_logger
from core.persister import FeedPersister
from core.scheduler import RunOutcome, RunStatus

# INSTANCIAÇÃO GLOBAL DO LOGGER (Nível de Módulo)
logger = get_logger(__name__)


class PipelineError(Exception):
    """Execução do feed sem dados ou com falha de gravação."""
    pass


class FeedPipeline:
    """
    Fluxo único para qualquer feed: Fetch -> Extract (+ Value Parser) -> Save.
    Erros de rede e de extração sobem para o scheduler, que registra 'failed'.
    """

    def __init__(self, feed: FeedSpec, fetcher: FeedFetcher, persister: FeedPersister, extractor: TableExtractor = None):
        self.feed = feed
        self.fetcher = fetcher
        self.persister = persister
        self.extractor = extractor or TableExtractor(feed)

        self.total_rows_skipped = 0

    async def scrape(self) -> ExtractionResult:
        """Busca e extrai, sem persistir."""
        html = await self.fetcher.fetch()
        result = self.extractor.extract(html)

        self.total_rows_skipped += result.rows_skipped
        return result

    async def run(self) -> RunOutcome:
        # 1. Coleta
        logger.info(f"📡 Raspando {self.feed.label}...")
        result = await self.scrape()

        if not result.records:
            raise PipelineError("No data scraped")
        logger.info(f"✅ {len(result.records)} registros extraídos de {self.feed.label}")

        # 2. Persistência (client Supabase é síncrono: roda fora do event loop)
        logger.info("💾 Salvando no Supabase...")
        saved = await asyncio.to_thread(self.persister.save, result.records)

        if not saved["success"]:
            raise PipelineError(f"Failed to save data: {saved['message']}")

        return RunOutcome(
            status=RunStatus.SUCCESS,
            details={
                "scraped_count": len(result.records),
                "saved_count": saved["saved_count"],
                "rows_total": result.rows_total,
                "rows_skipped": result.rows_skipped,
                "total_rows_skipped": self.total_rows_skipped,
            },
        )
