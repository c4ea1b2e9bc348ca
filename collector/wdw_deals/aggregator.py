"""ソース1件分の集約処理.

処理フロー:
  1. ソースから RawItem を取得
  2. 採用判定を通ったものをディール候補に変換（source_url で重複除去）
  3. ソース id を解決し、候補を1件ずつ upsert
  4. ソースのヘルス状態を記録

取得・パースで発生した例外はここで捕捉し、失敗として記録して RunResult を返す.
"""

from __future__ import annotations

import logging
from datetime import date

import requests

from wdw_deals.models import DealCandidate, RawItem, RunResult
from wdw_deals.sources import Source
from wdw_deals.store import UNKNOWN_ERROR, DealStore

logger = logging.getLogger(__name__)


def collect_candidates(
    source: Source, items: list[RawItem], today: date | None = None
) -> list[DealCandidate]:
    """RawItem 一覧から採用するディール候補を組み立てる."""
    candidates: list[DealCandidate] = []
    seen_urls: set[str] = set()
    skipped = 0

    for item in items:
        if not source.accepts(item):
            skipped += 1
            continue
        candidate = source.build_candidate(item, today)
        if candidate is None or candidate.source_url in seen_urls:
            skipped += 1
            continue
        seen_urls.add(candidate.source_url)
        candidates.append(candidate)

    logger.info("[%s] 取得 %d 件, 候補 %d 件, スキップ %d 件",
                source.name, len(items), len(candidates), skipped)
    return candidates


def save_candidates(source: Source, candidates: list[DealCandidate], store: DealStore) -> int:
    """候補を保存し、書き込めた件数を返す."""
    if not candidates:
        return 0

    source_id = store.resolve_source_id(source.name)
    if source_id is None:
        return 0

    return sum(
        1 for candidate in candidates
        if store.upsert_deal(candidate, source_id, source.name)
    )


def run_source(
    source: Source,
    store: DealStore,
    session: requests.Session | None = None,
    today: date | None = None,
) -> RunResult:
    """1ソース分の取得 → 抽出 → 保存 → ヘルス記録を行う. 例外は送出しない."""
    logger.info("[%s] 集約開始", source.name)

    try:
        items = source.fetch_items(session)
        candidates = collect_candidates(source, items, today)
    except Exception as e:
        message = str(e) or UNKNOWN_ERROR
        logger.exception("[%s] 集約失敗: %s", source.name, message)
        store.record_run(source.name, False, message)
        return RunResult(source=source.name, success=False, error=message)

    saved = save_candidates(source, candidates, store)
    store.record_run(source.name, True)

    logger.info("[%s] 集約完了: 候補 %d 件, 保存 %d 件",
                source.name, len(candidates), saved)
    return RunResult(
        source=source.name,
        success=True,
        deals_found=len(candidates),
        deals_saved=saved,
    )
