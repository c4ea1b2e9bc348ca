"""ディール保存とソースのヘルス記録.

全ソース共通の永続化処理. レコードストア（SupabaseRecordStore またはテスト用の
インメモリ実装）に対して以下を行う.

  - resolve_source_id: ソース名から id を引く
  - upsert_deal: source_url をキーに更新 or 挿入
  - record_run: last_checked_at / error_count / last_error の更新

どの操作も例外を呼び出し元へ送出しない（ログに残して継続）.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol

from wdw_deals.models import FREE_DINING, DealCandidate

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


class RecordStore(Protocol):
    def find_source(self, name: str) -> dict | None: ...

    def update_source(self, name: str, fields: dict) -> None: ...

    def find_deal_by_url(self, source_url: str) -> dict | None: ...

    def insert_deal(self, row: dict) -> None: ...

    def update_deal(self, deal_id, row: dict) -> None: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_count(source: dict | None) -> int:
    if not source:
        return 0
    try:
        return int(source.get("error_count") or 0)
    except (TypeError, ValueError):
        return 0


class DealStore:
    """ディールとソース状態の書き込み窓口."""

    def __init__(self, records: RecordStore):
        self.records = records

    def resolve_source_id(self, name: str):
        """ソース名から deal_sources.id を取得する. 未登録・取得失敗時は None."""
        try:
            source = self.records.find_source(name)
            if not source:
                logger.error("[%s] Source not found in database", name)
                return None
            return source["id"]
        except Exception:
            logger.exception("[%s] ソース取得失敗", name)
            return None

    def upsert_deal(self, candidate: DealCandidate, source_id, source_name: str = "") -> bool:
        """source_url をキーにディールを更新または挿入する.

        Returns:
            書き込めたら True. 保存に失敗した場合は False.
        """
        row = candidate.to_row()
        row["source_id"] = source_id

        try:
            existing = self.records.find_deal_by_url(candidate.source_url)
            if existing:
                row["updated_at"] = _now()
                self.records.update_deal(existing["id"], row)
                logger.info("[%s] 既存ディールを更新: %s", source_name, candidate.title)
            else:
                row.update({
                    "is_active": True,
                    "priority": 0,
                    "blackout_dates": [],
                    "ticket_required": False,
                    "dining_plan_included": candidate.deal_type == FREE_DINING,
                })
                self.records.insert_deal(row)
                logger.info("[%s] 新規ディールを作成: %s", source_name, candidate.title)
        except Exception:
            logger.exception("[%s] ディール保存失敗: url=%s", source_name, candidate.source_url)
            return False

        return True

    def _previous_error_count(self, name: str) -> int:
        try:
            return _error_count(self.records.find_source(name))
        except Exception as e:
            logger.warning("[%s] 直前の error_count を取得できず 0 として扱う: %s", name, e)
            return 0

    def record_run(self, name: str, success: bool, error: str | None = None) -> None:
        """ソースの実行結果を記録する.

        成功時は error_count を 0 に戻して last_error を消す.
        失敗時は error_count を +1 し、last_error にメッセージを残す.
        """
        fields: dict = {"last_checked_at": _now()}
        if success:
            fields["error_count"] = 0
            fields["last_error"] = None
        else:
            fields["error_count"] = self._previous_error_count(name) + 1
            fields["last_error"] = error or UNKNOWN_ERROR

        try:
            self.records.update_source(name, fields)
        except Exception:
            logger.exception("[%s] ソース状態の更新失敗", name)
