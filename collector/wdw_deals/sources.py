"""ディール取得元ごとの取得・抽出戦略.

各ソースは fetch_items() で抽出前の RawItem を返し、accepts() で採用判定を行う.
候補の組み立て・保存・ヘルス記録は aggregator 側で共通化している.

  - AllEars.net: ディール記事一覧の HTML をパース
  - Reddit r/WaltDisneyWorld: hot.json の投稿をそのまま RawItem にする
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from datetime import date
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from wdw_deals.config import (
    ALLEARS_BASE_URL,
    ALLEARS_DEALS_URL,
    ALLEARS_DEFAULT_WINDOW_DAYS,
    ALLEARS_SOURCE_NAME,
    ALLEARS_USER_AGENT,
    REDDIT_BASE_URL,
    REDDIT_DEFAULT_WINDOW_DAYS,
    REDDIT_HOT_URL,
    REDDIT_SOURCE_NAME,
    REDDIT_USER_AGENT,
)
from wdw_deals.extractor import (
    FROM_TO_RANGE_PATTERN,
    MONTH_DAY_RANGE_PATTERN,
    SLASH_RANGE_PATTERN,
    VALID_STAY_RANGE_PATTERN,
    DatePattern,
    ExtractionRules,
    build_candidate,
    is_community_deal,
    is_content_deal,
    parse_month_day,
    parse_slash_date,
)
from wdw_deals.fetcher import fetch_json, fetch_text
from wdw_deals.models import DealCandidate, RawItem

logger = logging.getLogger(__name__)

_ARTICLE_SELECTOR = ".post, article, .entry, .card"
_TITLE_SELECTOR = "h2, h3, .entry-title, .post-title, .card-title"
_EXCERPT_SELECTOR = ".excerpt, .entry-content, .card-text, p"

# AllEars はプレフィックス付きのコードのみ拾う（長さ制限なし）
_ALLEARS_CODE_PATTERN = re.compile(r"(?:code|promo)[:\s]+([A-Z0-9]+)", re.IGNORECASE)


class Source(ABC):
    """取得元の基底クラス."""

    name: str = ""  # deal_sources.name と一致させる
    rules: ExtractionRules

    @abstractmethod
    def fetch_items(self, session: requests.Session | None = None) -> list[RawItem]:
        """取得元から抽出前の RawItem 一覧を返す.

        Raises:
            FetchError: 取得に失敗した場合
        """

    @abstractmethod
    def accepts(self, item: RawItem) -> bool:
        """ディール候補として扱うかどうか."""

    def build_candidate(
        self, item: RawItem, today: date | None = None
    ) -> DealCandidate | None:
        return build_candidate(item, self.rules, today)


class AllEarsSource(Source):
    """AllEars.net の WDW ディール記事一覧."""

    name = ALLEARS_SOURCE_NAME
    rules = ExtractionRules(
        default_window_days=ALLEARS_DEFAULT_WINDOW_DAYS,
        date_patterns=(
            DatePattern(MONTH_DAY_RANGE_PATTERN, parse_month_day),
            DatePattern(VALID_STAY_RANGE_PATTERN, parse_month_day),
            DatePattern(FROM_TO_RANGE_PATTERN, parse_month_day),
        ),
        code_patterns=(_ALLEARS_CODE_PATTERN,),
    )

    def fetch_items(self, session: requests.Session | None = None) -> list[RawItem]:
        html = fetch_text(ALLEARS_DEALS_URL, ALLEARS_USER_AGENT, session)
        return parse_allears_items(html)

    def accepts(self, item: RawItem) -> bool:
        return is_content_deal(item)


class RedditSource(Source):
    """Reddit r/WaltDisneyWorld の hot 投稿."""

    name = REDDIT_SOURCE_NAME
    rules = ExtractionRules(
        default_window_days=REDDIT_DEFAULT_WINDOW_DAYS,
        date_patterns=(
            DatePattern(MONTH_DAY_RANGE_PATTERN, parse_month_day),
            DatePattern(SLASH_RANGE_PATTERN, parse_slash_date),
            DatePattern(FROM_TO_RANGE_PATTERN, parse_month_day),
        ),
        passholder_terms=("passholder", "annual pass", " ap "),
        description_fallback="Reddit community post: {title}",
    )

    def fetch_items(self, session: requests.Session | None = None) -> list[RawItem]:
        payload = fetch_json(REDDIT_HOT_URL, REDDIT_USER_AGENT, session)
        return parse_reddit_items(payload)

    def accepts(self, item: RawItem) -> bool:
        return is_community_deal(item)


def parse_allears_items(html: str) -> list[RawItem]:
    """記事一覧 HTML から記事カードごとの RawItem を抽出する.

    リンクはタイトル内の <a> を優先し、なければカード内の最初の <a>.
    相対リンクは https://allears.net 基準の絶対 URL にする.
    """
    soup = BeautifulSoup(html, "html.parser")
    items: list[RawItem] = []

    for element in soup.select(_ARTICLE_SELECTOR):
        title_el = element.select_one(_TITLE_SELECTOR)
        title = title_el.get_text(" ", strip=True) if title_el else ""

        link = title_el.find("a") if title_el else None
        if link is None:
            link = element.find("a")
        href = link.get("href", "") if link else ""

        excerpt_el = element.select_one(_EXCERPT_SELECTOR)
        body = excerpt_el.get_text(" ", strip=True) if excerpt_el else ""

        items.append(RawItem(
            title=title,
            body=body,
            url=urljoin(ALLEARS_BASE_URL, href) if href else "",
        ))

    logger.info("AllEars 記事カード: %d 件", len(items))
    return items


def parse_reddit_items(payload) -> list[RawItem]:
    """hot.json のレスポンスから投稿ごとの RawItem を抽出する."""
    data = payload.get("data") if isinstance(payload, dict) else None
    children = (data or {}).get("children") or []

    items: list[RawItem] = []
    for child in children:
        post = child.get("data") if isinstance(child, dict) else None
        if not post:
            continue
        permalink = post.get("permalink") or ""
        items.append(RawItem(
            title=post.get("title") or "",
            body=post.get("selftext") or "",
            url=f"{REDDIT_BASE_URL}{permalink}" if permalink else "",
            score=post.get("score") or 0,
            num_comments=post.get("num_comments") or 0,
        ))

    logger.info("Reddit 投稿: %d 件", len(items))
    return items


SOURCES: dict[str, Source] = {
    source.name: source for source in (AllEarsSource(), RedditSource())
}


def get_sources(names: list[str] | None = None) -> list[Source]:
    """登録済みソースを返す. names 指定時はその順で絞り込む.

    Raises:
        KeyError: 未登録のソース名が含まれる場合
    """
    if not names:
        return list(SOURCES.values())
    return [SOURCES[name] for name in names]
