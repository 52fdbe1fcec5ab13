from datetime import datetime
from typing import List

import pandas as pd

from core.feeds import PERCENT, FeedRecord, FeedSpec


class ConsolePresenter:
    """
    Responsável pela formatação visual dos dados raspados (terminal).
    Isola a camada de apresentação da lógica de coleta.
    """

    @staticmethod
    def _format_value(value, is_percent: bool) -> str:
        if value is None:
            return "N/A"
        if is_percent:
            sign = "+" if value > 0 else ""
            return f"{sign}{value:.2f}%"
        return f"{value:,.4f}" if abs(value) < 100 else f"{value:,.2f}"

    @staticmethod
    def to_frame(feed: FeedSpec, records: List[FeedRecord]) -> pd.DataFrame:
        percent_fields = {c.field for c in feed.columns if c.kind == PERCENT}
        rows = []
        for record in records:
            row = {"Name": record.name}
            for metric in feed.metric_fields:
                row[metric] = ConsolePresenter._format_value(record.metrics.get(metric), metric in percent_fields)
            if feed.has_time:
                row["time"] = record.time or "N/A"
            rows.append(row)

        columns = ["Name"] + feed.metric_fields + (["time"] if feed.has_time else [])
        return pd.DataFrame(rows, columns=columns)

    @staticmethod
    def render(feed: FeedSpec, records: List[FeedRecord], now: datetime = None) -> str:
        df = ConsolePresenter.to_frame(feed, records)
        table = df.to_string(index=False) if not df.empty else "(sem registros)"
        width = max((len(line) for line in table.splitlines()), default=0)
        width = max(width, 60)

        stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        lines = [
            "=" * width,
            f"{feed.label.upper()} DATA",
            "=" * width,
            table,
            "=" * width,
            f"Total: {len(records)}",
            f"Scraped at: {stamp}",
            "=" * width,
        ]
        return "\n".join(lines)
