import asyncio

from core.feeds import FEEDS
from core.persister import FeedPersister
from core.retention import RetentionJob
from core.scheduler import RunStatus


def _retention(admin_db, public_db, days_to_keep=15):
    persisters = [FeedPersister(feed, admin_db, public_db) for feed in FEEDS.values()]
    return RetentionJob(persisters, days_to_keep)


def test_all_tables_cleaned(admin_db, public_db, fake_supabase):
    fake_supabase.cleanup_counts.update({"us_indices": 10, "brazil_indices": 5, "currencies": 2, "commodities": 1})

    outcome = asyncio.run(_retention(admin_db, public_db).run())

    assert outcome.status == RunStatus.SUCCESS
    assert outcome.details["total_deleted"] == 18
    assert outcome.details["days_to_keep"] == 15
    assert {t["table"] for t in outcome.details["tables"]} == {"us_indices", "brazil_indices", "currencies", "commodities"}


def test_one_failure_is_partial_success(admin_db, public_db, fake_supabase):
    """3 de 4 limpezas ok: partial_success e o total soma só as que deram certo."""
    fake_supabase.cleanup_counts.update({"us_indices": 10, "brazil_indices": 5, "currencies": 2, "commodities": 99})
    fake_supabase.fail_rpcs.add("cleanup_old_commodities_data")

    outcome = asyncio.run(_retention(admin_db, public_db).run())

    assert outcome.status == RunStatus.PARTIAL_SUCCESS
    assert outcome.details["total_deleted"] == 17
    failed = [t for t in outcome.details["tables"] if not t["success"]]
    assert [t["table"] for t in failed] == ["commodities"]


def test_everything_failing_is_failed(admin_db, public_db, fake_supabase):
    fake_supabase.fail_rpcs.update(feed.rpc_cleanup for feed in FEEDS.values())

    outcome = asyncio.run(_retention(admin_db, public_db).run())

    assert outcome.status == RunStatus.FAILED
    assert outcome.details["total_deleted"] == 0


def test_days_to_keep_is_forwarded(admin_db, public_db, fake_supabase):
    asyncio.run(_retention(admin_db, public_db, days_to_keep=30).run())

    cleanup_calls = [params for name, params in fake_supabase.rpc_calls if name.startswith("cleanup_old_")]
    assert cleanup_calls == [{"p_days_to_keep": 30}] * 4
