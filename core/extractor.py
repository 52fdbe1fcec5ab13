# ARQUIVO: core/extractor.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

import pytz
from bs4 import BeautifulSoup

from core.feeds import PERCENT, TEXT, FeedRecord, FeedSpec
from core.logger import get_logger
from core.value_parser import parse_number, parse_percent

logger = get_logger("TableExtractor")


class ExtractionError(Exception):
    """Falha estrutural ao ler o HTML de um feed."""
    pass


class TableNotFoundError(ExtractionError):
    pass


@dataclass
class ExtractionResult:
    records: List[FeedRecord] = field(default_factory=list)
    rows_total: int = 0
    rows_failed: int = 0   # linhas que levantaram exceção
    rows_dropped: int = 0  # linhas sem nome ou sem nenhuma métrica

    @property
    def rows_skipped(self) -> int:
        return self.rows_failed + self.rows_dropped


class TableExtractor:
    """
    Lê a tabela de cotações de uma página e devolve um FeedRecord por linha válida.
    Seletores com fallback são a única defesa contra mudanças no layout do site.
    """

    def __init__(self, feed: FeedSpec):
        self.feed = feed

    def extract(self, html: str) -> ExtractionResult:
        soup = BeautifulSoup(html or "", "html.parser")
        table = self._locate_table(soup)

        rows = self._body_rows(table)
        logger.info(f"🔎 {self.feed.label}: {len(rows)} linhas encontradas na tabela")

        result = ExtractionResult(rows_total=len(rows))
        for index, row in enumerate(rows):
            try:
                record = self._parse_row(row)
            except Exception as e:
                # Uma linha quebrada nunca derruba o lote
                logger.error(f"Erro ao processar linha {index} ({self.feed.key}): {e}")
                result.rows_failed += 1
                continue

            if record.name and record.has_data():
                result.records.append(record)
            else:
                result.rows_dropped += 1

        if result.rows_skipped:
            logger.warning(
                f"⚠️ {self.feed.label}: {result.rows_skipped} linhas ignoradas "
                f"({result.rows_failed} com erro, {result.rows_dropped} incompletas)"
            )
        return result

    # --- LOCALIZAÇÃO ---
    def _locate_table(self, soup: BeautifulSoup):
        for selector in self.feed.table_selectors:
            element = soup.select_one(selector)
            if element is None:
                continue

            logger.debug(f"Tabela localizada via seletor '{selector}'")
            if element.name == "table":
                return element
            # Container (ex: div[data-test=dynamic-table]): a tabela fica dentro dele
            return element.find("table") or element

        raise TableNotFoundError(f"No table found on the page ({self.feed.url})")

    @staticmethod
    def _body_rows(table) -> list:
        rows = table.select("tbody tr")
        if not rows:
            # Markup sem <tbody> (html.parser não o cria sozinho)
            rows = table.select("tr")
        return [row for row in rows if row.find("td")]

    # --- LINHAS ---
    def _parse_row(self, row) -> FeedRecord:
        metrics = {}
        quote_time = None

        for column in self.feed.columns:
            cell = self._find_cell(row, column.data_test, column.position)
            text = cell.get_text(strip=True) if cell is not None else None

            if column.kind == TEXT:
                quote_time = text or None
            elif column.kind == PERCENT:
                metrics[column.field] = parse_percent(text, self.feed.locale)
            else:
                metrics[column.field] = parse_number(text, self.feed.locale)

        return FeedRecord(
            name=self._extract_name(row),
            metrics=metrics,
            scraped_at=datetime.now(pytz.utc).isoformat(),
            time=quote_time,
        )

    def _extract_name(self, row) -> str:
        for selector in self.feed.name_selectors:
            anchor = row.select_one(selector)
            if anchor is None:
                continue
            name = anchor.get_text(strip=True)
            if name:
                return name
        return ""

    @staticmethod
    def _find_cell(row, data_test, position):
        if data_test:
            cell = row.select_one(f'td[data-test="{data_test}"]')
            if cell is not None:
                return cell
        return row.select_one(f"td:nth-child({position})")


def extract_rows(html: str, feed: FeedSpec) -> List[FeedRecord]:
    """Atalho: só os registros, sem as estatísticas."""
    return TableExtractor(feed).extract(html).records
