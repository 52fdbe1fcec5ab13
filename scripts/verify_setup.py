# scripts/verify_setup.py
import sys

from core.db import DatabaseManager
from core.env import load_supabase_env
from core.feeds import FEEDS
from core.logger import get_logger

logger = get_logger("SetupVerifier")

SETUP_HINT = """
📋 PARA CORRIGIR:
1. Abra o Dashboard do Supabase
2. Vá em SQL Editor
3. Cole o conteúdo de: sqls/feeds_setup.sql
4. Clique em "Run"
5. Rode este script novamente
"""


def verify_feed(db: DatabaseManager, feed) -> bool:
    try:
        res = db.client.table(feed.table_name)\
            .select("name, scraped_at")\
            .order("scraped_at", desc=True)\
            .limit(5)\
            .execute()
    except Exception as e:
        msg = str(e)
        if "does not exist" in msg or "Could not find the table" in msg:
            logger.error(f"❌ Tabela '{feed.table_name}' não existe no banco.")
        else:
            logger.error(f"❌ Erro de banco em '{feed.table_name}': {msg}")
        return False

    logger.info(f"✅ Tabela '{feed.table_name}' acessível")
    rows = res.data or []
    if not rows:
        logger.info("   ℹ️ Nenhum registro ainda. Rode: python main.py --mode once --feed " + feed.key)
    for row in rows:
        logger.info(f"   • {row['name']} @ {row['scraped_at']}")
    return True


def verify_setup() -> bool:
    logger.info("🔍 Verificando setup do banco de dados...")

    env = load_supabase_env()
    if not env.can_write:
        logger.critical("❌ Credenciais do Supabase ausentes no .env (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")
        return False

    db = DatabaseManager(use_service_role=True)
    if db.client is None:
        return False

    results = [verify_feed(db, feed) for feed in FEEDS.values()]
    if not all(results):
        print(SETUP_HINT)
        return False

    logger.info("🎉 Setup completo: todas as tabelas estão prontas.")
    return True


if __name__ == "__main__":
    sys.exit(0 if verify_setup() else 1)
