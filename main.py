import argparse
import asyncio
import sys

from core.feeds import FEEDS
from core.logger import get_logger
from core.scheduler import RunStatus
from data_ingestion.worker_cleanup import run_cleanup
from data_ingestion.worker_feeds import run_scheduler, run_single_feed

# Configuração de Log
logger = get_logger("MainEntry")


def main():
    """
    Ponto de entrada da aplicação.
    Responsabilidade: Parsear argumentos e iniciar o modo escolhido.
    """
    parser = argparse.ArgumentParser(description="Financial Feeds - Scraper & Scheduler")
    parser.add_argument(
        "--mode",
        choices=["scheduler", "once", "cleanup"],
        required=True,
        help="'scheduler' (cron contínuo), 'once' (uma execução de um feed) ou 'cleanup' (retenção)"
    )
    parser.add_argument(
        "--feed",
        choices=sorted(FEEDS),
        help="Feed alvo do modo 'once'"
    )
    args = parser.parse_args()

    if args.mode == "once" and not args.feed:
        parser.error("--feed é obrigatório no modo 'once'")

    try:
        if args.mode == "scheduler":
            asyncio.run(run_scheduler())
        elif args.mode == "once":
            ok = asyncio.run(run_single_feed(args.feed))
            sys.exit(0 if ok else 1)
        else:
            status = asyncio.run(run_cleanup())
            sys.exit(0 if status == RunStatus.SUCCESS else 1)

    except KeyboardInterrupt:
        logger.info("🛑 Execução interrompida pelo usuário.")
        sys.exit(0)
    except Exception as e:
        logger.critical(f"❌ [ERRO CRÍTICO] Falha não tratada no nível superior: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
