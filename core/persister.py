# ARQUIVO: core/persister.py
from typing import List

from core.db import ConfigurationError, DatabaseManager
from core.feeds import FeedRecord, FeedSpec
from core.logger import get_logger

logger = get_logger("FeedPersister")


class FeedPersister:
    """
    Gateway de persistência de um feed no Supabase.
    Escrita com a Service Role (ignora RLS); leitura com a chave pública.
    Todos os métodos devolvem um envelope {success, message, ...} em vez de levantar.
    """

    def __init__(self, feed: FeedSpec, admin_db: DatabaseManager, public_db: DatabaseManager):
        self.feed = feed
        self.admin_db = admin_db
        self.public_db = public_db

    # --- ESCRITA ---
    def save(self, records: List[FeedRecord]) -> dict:
        if not records:
            return {"success": False, "message": f"No {self.feed.key} data to save", "saved_count": 0}

        try:
            client = self.admin_db.require_client()
            rows = [record.to_row(self.feed) for record in records]

            res = client.table(self.feed.table_name).insert(rows).execute()
            saved = len(res.data) if res.data else 0

            logger.info(f"💾 {saved} registros salvos em '{self.feed.table_name}'")
            return {"success": True, "message": f"Saved {saved} {self.feed.key}", "saved_count": saved}

        except ConfigurationError as e:
            logger.critical(f"❌ {e}")
            return {"success": False, "message": str(e), "saved_count": 0}
        except Exception as e:
            # A atomicidade do lote é do próprio banco; aqui só reportamos
            logger.error(f"Erro DB (Save {self.feed.table_name}): {e}")
            return {"success": False, "message": str(e), "saved_count": 0}

    def cleanup_old_data(self, days_to_keep: int = 15) -> dict:
        try:
            client = self.admin_db.require_client()
            res = client.rpc(self.feed.rpc_cleanup, {"p_days_to_keep": days_to_keep}).execute()
            deleted = int(res.data or 0)

            logger.info(f"🗑️ {deleted} registros antigos removidos de '{self.feed.table_name}'")
            return {"success": True, "message": f"Deleted {deleted} old records", "deleted_count": deleted}

        except Exception as e:
            logger.error(f"Erro DB (Cleanup {self.feed.table_name}): {e}")
            return {"success": False, "message": str(e), "deleted_count": 0}

    # --- LEITURA ---
    def get_latest(self) -> dict:
        return self._call_read_rpc(self.feed.rpc_latest, {}, what=self.feed.key)

    def get_history(self, name: str, limit: int = 100) -> dict:
        params = {"p_name": name, "p_limit": limit}
        return self._call_read_rpc(self.feed.rpc_history, params, what=f"records for {name}")

    def get_by_date_range(self, start_date: str, end_date: str) -> dict:
        params = {"p_start_date": start_date, "p_end_date": end_date}
        return self._call_read_rpc(self.feed.rpc_date_range, params, what="records")

    def _call_read_rpc(self, function_name: str, params: dict, what: str) -> dict:
        try:
            client = self.public_db.require_client()
            res = client.rpc(function_name, params).execute()
            data = res.data or []
            return {"success": True, "message": f"Retrieved {len(data)} {what}", "data": data}

        except Exception as e:
            logger.error(f"Erro DB ({function_name}): {e}")
            return {"success": False, "message": str(e), "data": []}
