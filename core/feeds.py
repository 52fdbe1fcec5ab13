# ARQUIVO: core/feeds.py
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from core.value_parser import COMMA, DOT

NUMBER = "number"
PERCENT = "percent"
TEXT = "text"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
ACCEPT_LANGUAGE_EN = "en-US,en;q=0.5"
ACCEPT_LANGUAGE_PT = "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7"


@dataclass(frozen=True)
class ColumnSpec:
    """Uma coluna da tabela: seletor semântico (data-test) + posição de fallback (1-based)."""
    field: str
    position: int
    data_test: Optional[str] = None
    kind: str = NUMBER


@dataclass(frozen=True)
class FeedSpec:
    """
    Tudo que diferencia um feed do outro.
    O pipeline é um só; cada feed é apenas uma instância desta configuração.
    """
    key: str
    label: str
    url: str
    table_name: str
    locale: str
    accept_language: str
    table_selectors: Tuple[str, ...]
    name_selectors: Tuple[str, ...]
    columns: Tuple[ColumnSpec, ...]
    rpc_latest: str
    rpc_history: str
    rpc_date_range: str
    rpc_cleanup: str
    cron: str = "*/2 * * * *"
    timezone: str = "UTC"

    @property
    def slug(self) -> str:
        return self.key.replace("_", "-")

    @property
    def metric_fields(self) -> List[str]:
        return [c.field for c in self.columns if c.kind != TEXT]

    @property
    def has_time(self) -> bool:
        return any(c.kind == TEXT for c in self.columns)

    def request_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": self.accept_language,
            "Accept-Encoding": "gzip, deflate, br",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }


@dataclass
class FeedRecord:
    name: str
    metrics: Dict[str, Optional[float]]
    scraped_at: str
    time: Optional[str] = None

    def has_data(self) -> bool:
        return any(v is not None for v in self.metrics.values())

    def to_row(self, feed: FeedSpec) -> dict:
        """Mapeia o registro para as colunas da tabela remota."""
        row = {"name": self.name}
        for metric in feed.metric_fields:
            row[metric] = self.metrics.get(metric)
        if feed.has_time:
            row["time"] = self.time
        row["scraped_at"] = self.scraped_at
        return row


# --- COLUNAS COMPARTILHADAS ---
# Nome, Último, Máxima, Mínima, Var., Var. %, Hora (coluna 1 é o checkbox)
INDEX_COLUMNS = (
    ColumnSpec("last", 3, "last"),
    ColumnSpec("high", 4, "high"),
    ColumnSpec("low", 5, "low"),
    ColumnSpec("change", 6, "change"),
    ColumnSpec("change_percent", 7, "change-percent", PERCENT),
    ColumnSpec("time", 8, "time", TEXT),
)

DEFAULT_NAME_SELECTORS = (
    'td[data-test="name"] a',
    "td.name a",
    "td:first-child a",
    "td:nth-child(2) a",
)

# ==============================================================================
# CATÁLOGO DE FEEDS
# ==============================================================================
US_INDICES = FeedSpec(
    key="us_indices",
    label="US Indices",
    url="https://www.investing.com/indices/usa-indices?include-major-indices=true",
    table_name="us_indices",
    locale=DOT,
    accept_language=ACCEPT_LANGUAGE_EN,
    table_selectors=(".dynamic-table", "table"),
    name_selectors=DEFAULT_NAME_SELECTORS,
    columns=INDEX_COLUMNS,
    rpc_latest="get_latest_us_indices",
    rpc_history="get_us_index_history",
    rpc_date_range="get_us_indices_by_date_range",
    rpc_cleanup="cleanup_old_us_indices_data",
    cron="*/2 * * * *",
    timezone="America/New_York",
)

BRAZIL_INDICES = FeedSpec(
    key="brazil_indices",
    label="Brazil Indices",
    url="https://br.investing.com/indices/brazil-indices",
    table_name="brazil_indices",
    locale=COMMA,
    accept_language=ACCEPT_LANGUAGE_PT,
    table_selectors=(".dynamic-table", "table"),
    name_selectors=DEFAULT_NAME_SELECTORS,
    columns=INDEX_COLUMNS,
    rpc_latest="get_latest_brazil_indices",
    rpc_history="get_brazil_index_history",
    rpc_date_range="get_brazil_indices_by_date_range",
    rpc_cleanup="cleanup_old_brazil_indices_data",
    cron="*/2 * * * *",
    timezone="America/Sao_Paulo",
)

# Resumo técnico: lado, Par, Último, Var., Var. %, ícone, lado
CURRENCIES = FeedSpec(
    key="currencies",
    label="Currencies",
    url="https://br.investing.com/technical/technical-summary",
    table_name="currencies",
    locale=COMMA,
    accept_language=ACCEPT_LANGUAGE_PT,
    table_selectors=("#QBS_1_inner", "table"),
    name_selectors=("td:nth-child(2) a",),
    columns=(
        ColumnSpec("last_price", 3),
        ColumnSpec("change", 4),
        ColumnSpec("change_percent", 5, kind=PERCENT),
    ),
    rpc_latest="get_latest_currencies",
    rpc_history="get_currency_history",
    rpc_date_range="get_currencies_by_date_range",
    rpc_cleanup="cleanup_old_currencies_data",
    cron="*/2 * * * *",
    timezone="America/Sao_Paulo",
)

# Nome, 15 Minutos, Hora, Diário, 1 Semana, 1 Mês, YTD, 3 Anos
COMMODITIES = FeedSpec(
    key="commodities",
    label="Commodities",
    url="https://www.investing.com/commodities",
    table_name="commodities",
    locale=DOT,
    accept_language=ACCEPT_LANGUAGE_EN,
    table_selectors=('div[data-test="dynamic-table"]', ".dynamic-table", "table"),
    name_selectors=DEFAULT_NAME_SELECTORS,
    columns=(
        ColumnSpec("fifteen_minutes", 3, "15-minutes", PERCENT),
        ColumnSpec("hourly", 4, "hourly", PERCENT),
        ColumnSpec("daily", 5, "daily", PERCENT),
        ColumnSpec("one_week", 6, "1-week", PERCENT),
        ColumnSpec("one_month", 7, "1-month", PERCENT),
        ColumnSpec("ytd", 8, "ytd", PERCENT),
        ColumnSpec("three_years", 9, "3-years", PERCENT),
    ),
    rpc_latest="get_latest_commodities",
    rpc_history="get_commodity_history",
    rpc_date_range="get_commodities_by_date_range",
    rpc_cleanup="cleanup_old_commodities_data",
    cron="*/5 * * * *",
    timezone="America/Sao_Paulo",
)

FEEDS: Dict[str, FeedSpec] = {
    feed.key: feed for feed in (US_INDICES, BRAZIL_INDICES, CURRENCIES, COMMODITIES)
}


def get_feed(key_or_slug: str) -> FeedSpec:
    """Aceita a chave ('us_indices') ou o slug de URL ('us-indices')."""
    key = key_or_slug.replace("-", "_")
    if key not in FEEDS:
        raise KeyError(f"Feed desconhecido: {key_or_slug}")
    return FEEDS[key]
