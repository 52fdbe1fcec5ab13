# scripts/preview_feed.py
import argparse
import asyncio

from core.env import load_config
from core.extractor import TableExtractor
from core.factory import FeedServiceFactory
from core.feeds import FEEDS, get_feed
from core.fetcher import FeedFetcher
from core.logger import get_logger
from core.reporting.presenter import ConsolePresenter

logger = get_logger("FeedPreview")


async def preview(feed_key: str):
    """
    Raspa um feed e imprime a tabela no terminal, sem gravar no banco.
    Útil para checar se os seletores ainda batem com o layout do site.
    """
    config = load_config()
    feed = FeedServiceFactory.configure_feed(get_feed(feed_key), (config.get("feeds") or {}).get(feed_key, {}) or {})
    timeout = float((config.get("http") or {}).get("timeout_seconds", 20))

    html = await FeedFetcher(feed, timeout=timeout).fetch()
    result = TableExtractor(feed).extract(html)

    print(ConsolePresenter.render(feed, result.records))
    logger.info(
        f"📋 Linhas: {result.rows_total} | Registros: {len(result.records)} | Ignoradas: {result.rows_skipped}"
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Preview de um feed (sem persistência)")
    parser.add_argument("--feed", choices=sorted(FEEDS), required=True)
    args = parser.parse_args()

    asyncio.run(preview(args.feed))

# Para rodar: PYTHONPATH=. uv run python scripts/preview_feed.py --feed currencies
