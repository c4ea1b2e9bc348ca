"""WDW ディール収集のメインエントリーポイント.

処理フロー:
  1. 対象ソースを決定（引数なしなら全ソース）
  2. ソースごとに独立して集約を実行（1件の失敗が他を止めない）
  3. 結果サマリをログに出力

使い方:
  python -m wdw_deals.main                       # 全ソース
  python -m wdw_deals.main "AllEars.net"         # 指定ソースのみ
"""

from __future__ import annotations

import logging
import sys
import time
from datetime import datetime

import requests

from wdw_deals.aggregator import run_source
from wdw_deals.config import LOG_DIR
from wdw_deals.db import SupabaseRecordStore
from wdw_deals.models import RunResult
from wdw_deals.sources import SOURCES, get_sources
from wdw_deals.store import DealStore


def setup_logging() -> None:
    """ロギングの初期設定."""
    log_file = LOG_DIR / f"collector_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def run_all(
    names: list[str] | None = None, store: DealStore | None = None
) -> list[RunResult]:
    """指定ソース（省略時は全ソース）を順番に集約する."""
    store = store or DealStore(SupabaseRecordStore())
    results: list[RunResult] = []

    with requests.Session() as session:
        for source in get_sources(names):
            results.append(run_source(source, store, session))

    return results


def run(argv: list[str] | None = None) -> int:
    """メイン処理. 失敗したソースがあれば 1 を返す."""
    setup_logging()
    logger = logging.getLogger(__name__)
    names = sys.argv[1:] if argv is None else argv

    unknown = [name for name in names if name not in SOURCES]
    if unknown:
        logger.error("未登録のソース: %s (登録済み: %s)",
                     ", ".join(unknown), ", ".join(SOURCES))
        return 2

    logger.info("=== ディール収集 開始 ===")
    start_time = time.time()

    results = run_all(names or None)

    # サマリ
    elapsed = time.time() - start_time
    logger.info("=== ディール収集 完了 ===")
    for r in results:
        if r.success:
            logger.info("  %s → 候補 %d 件, 保存 %d 件", r.source, r.deals_found, r.deals_saved)
        else:
            logger.warning("  %s → 失敗: %s", r.source, r.error)
    failed = sum(1 for r in results if not r.success)
    logger.info("ソース: %d 件, 失敗: %d 件, 所要時間: %.1f 秒",
                len(results), failed, elapsed)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(run())
