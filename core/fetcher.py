# ARQUIVO: core/fetcher.py
import httpx

from core.feeds import FeedSpec
from core.logger import get_logger

logger = get_logger("FeedFetcher")


class FetchError(Exception):
    """Falha de rede ou HTTP ao baixar a página de um feed (sem retry nesta camada)."""

    def __init__(self, message, url=None, status_code=None, headers=None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.headers = dict(headers) if headers else {}


class FeedFetcher:
    """
    Um único GET com cabeçalhos de navegador desktop.
    O idioma (Accept-Language) segue o site de origem do feed.
    """

    def __init__(self, feed: FeedSpec, timeout: float = 20.0, transport: httpx.AsyncBaseTransport = None):
        self.feed = feed
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str = None) -> str:
        target = url or self.feed.url
        logger.info(f"📡 Buscando dados em: {target}")

        async with httpx.AsyncClient(
            headers=self.feed.request_headers(),
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            try:
                response = await client.get(target)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.error(f"❌ Erro HTTP {status} ao buscar {self.feed.label}")
                logger.error(f"   Response headers: {dict(e.response.headers)}")
                raise FetchError(
                    f"HTTP {status} from {target}",
                    url=target,
                    status_code=status,
                    headers=e.response.headers,
                ) from e
            except httpx.RequestError as e:
                logger.error(f"❌ Falha de rede ao buscar {self.feed.label}: {e}")
                raise FetchError(f"Request to {target} failed: {e}", url=target) from e

        return response.text
