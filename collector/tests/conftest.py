"""テスト共通フィクスチャ."""

import json
from pathlib import Path

import pytest

from wdw_deals.config import ALLEARS_SOURCE_NAME, REDDIT_SOURCE_NAME
from wdw_deals.store import DealStore

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def load_json_fixture(name: str):
    return json.loads(load_fixture(name))


class InMemoryRecordStore:
    """SupabaseRecordStore と同じインターフェースのインメモリ実装."""

    def __init__(self, source_names=()):
        self.sources = {
            name: {
                "id": i,
                "name": name,
                "error_count": 0,
                "last_error": None,
                "last_checked_at": None,
            }
            for i, name in enumerate(source_names, start=1)
        }
        self.deals: dict[int, dict] = {}
        self._next_id = 1

    def find_source(self, name):
        source = self.sources.get(name)
        return dict(source) if source else None

    def update_source(self, name, fields):
        if name in self.sources:
            self.sources[name].update(fields)

    def find_deal_by_url(self, source_url):
        for deal_id, row in self.deals.items():
            if row["source_url"] == source_url:
                return {"id": deal_id}
        return None

    def insert_deal(self, row):
        self.deals[self._next_id] = dict(row, id=self._next_id)
        self._next_id += 1

    def update_deal(self, deal_id, row):
        self.deals[deal_id].update(row)

    def deals_with_url(self, source_url):
        return [row for row in self.deals.values() if row["source_url"] == source_url]


@pytest.fixture
def records():
    return InMemoryRecordStore([ALLEARS_SOURCE_NAME, REDDIT_SOURCE_NAME])


@pytest.fixture
def store(records):
    return DealStore(records)
