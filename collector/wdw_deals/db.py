"""Supabase データベース操作モジュール.

deal_sources / deals テーブルへの最小限の読み書きのみを提供する.
Supabase client のスキーマ指定は .schema() で行う.
postgrest / httpx の例外は PersistenceError に変換する.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from wdw_deals.config import (
    DEAL_SOURCES_TABLE,
    DEALS_TABLE,
    SUPABASE_SCHEMA,
    SUPABASE_SECRET_KEY,
    SUPABASE_URL,
)
from wdw_deals.errors import PersistenceError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client() -> Client:
    """Supabase クライアントを生成する（プロセス内で1つ）."""
    if not SUPABASE_URL or not SUPABASE_SECRET_KEY:
        raise PersistenceError("SUPABASE_URL / SUPABASE_SECRET_KEY が未設定です")
    try:
        return create_client(SUPABASE_URL, SUPABASE_SECRET_KEY)
    except Exception as e:
        # 不正な URL・キーは supabase 側の例外になる
        raise PersistenceError(f"Supabase クライアント生成失敗: {e}") from e


class SupabaseRecordStore:
    """deal_sources / deals テーブルへのアクセス."""

    def __init__(self, client: Client | None = None, schema: str = SUPABASE_SCHEMA):
        self._client = client
        self._schema = schema

    def _table(self, name: str):
        """対象スキーマのテーブルを参照する."""
        client = self._client or get_client()
        return client.schema(self._schema).table(name)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as e:
            raise PersistenceError(f"{action} failed: {e}") from e

    def find_source(self, name: str) -> dict | None:
        """name でソース行を1件取得する. なければ None."""
        resp = self._execute(
            self._table(DEAL_SOURCES_TABLE)
            .select("id, name, error_count, last_error, last_checked_at")
            .eq("name", name)
            .limit(1),
            f"select {DEAL_SOURCES_TABLE}",
        )
        return resp.data[0] if resp.data else None

    def update_source(self, name: str, fields: dict) -> None:
        self._execute(
            self._table(DEAL_SOURCES_TABLE).update(fields).eq("name", name),
            f"update {DEAL_SOURCES_TABLE}",
        )

    def find_deal_by_url(self, source_url: str) -> dict | None:
        """source_url でディールを1件取得する. なければ None."""
        resp = self._execute(
            self._table(DEALS_TABLE)
            .select("id")
            .eq("source_url", source_url)
            .limit(1),
            f"select {DEALS_TABLE}",
        )
        return resp.data[0] if resp.data else None

    def insert_deal(self, row: dict) -> None:
        self._execute(
            self._table(DEALS_TABLE).insert([row]),
            f"insert {DEALS_TABLE}",
        )

    def update_deal(self, deal_id, row: dict) -> None:
        self._execute(
            self._table(DEALS_TABLE).update(row).eq("id", deal_id),
            f"update {DEALS_TABLE}",
        )
