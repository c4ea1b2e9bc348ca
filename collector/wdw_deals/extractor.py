"""ディール抽出モジュール.

タイトル・本文のテキストからキーワードと正規表現でディール候補を組み立てる.

抽出ルール:
  1. 割引率: "up to N%" を "N% off" より優先
  2. プロモコード: パターンを順に試し、最初の一致を採用
  3. 有効期間: (パターン, パーサ) を順に試し、日付として解釈できた最初の一致を採用
     どれも解釈できなければ today から既定日数の期間
  4. 種別: 優先順の部分一致ルールで最初に一致したもの
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

from wdw_deals.config import (
    COMMUNITY_DEAL_KEYWORDS,
    CONTENT_DEAL_KEYWORDS,
    DESCRIPTION_MAX_LENGTH,
    MIN_TITLE_LENGTH,
    REDDIT_MIN_COMMENTS,
    REDDIT_MIN_SCORE,
    TITLE_MAX_LENGTH,
)
from wdw_deals.models import (
    FREE_DINING,
    FREE_NIGHTS,
    OTHER,
    PACKAGE_DISCOUNT,
    PASSHOLDER_EXCLUSIVE,
    ROOM_DISCOUNT,
    ROOM_UPGRADE,
    DealCandidate,
    RawItem,
)

logger = logging.getLogger(__name__)

_DISCOUNT_PATTERN = re.compile(r"(\d+)%\s*(?:off|discount|savings)", re.IGNORECASE)
_UP_TO_PATTERN = re.compile(r"up\s+to\s+(\d+)%", re.IGNORECASE)

# --- プロモコード ---
PREFIXED_CODE_PATTERN = re.compile(r"(?:code|promo)[:\s]+([A-Z0-9]{4,15})", re.IGNORECASE)
USE_CODE_PATTERN = re.compile(r"use\s+([A-Z0-9]{4,15})", re.IGNORECASE)
BARE_CODE_PATTERN = re.compile(r"\b([A-Z]{3,}\d{2,})\b")  # 例: ABC2025

# --- 有効期間 ---
_MONTH_DAY = r"\w+\s+\d{1,2}"
_MONTH_DAY_YEAR = r"\w+\s+\d{1,2}(?:,\s*\d{4})?"

MONTH_DAY_RANGE_PATTERN = re.compile(
    rf"({_MONTH_DAY_YEAR})\s*(?:-|through|to|until)\s*({_MONTH_DAY_YEAR})",
    re.IGNORECASE,
)
VALID_STAY_RANGE_PATTERN = re.compile(
    rf"(?:valid|stay)\s+({_MONTH_DAY})\s*-\s*({_MONTH_DAY})",
    re.IGNORECASE,
)
FROM_TO_RANGE_PATTERN = re.compile(
    rf"from\s+({_MONTH_DAY})\s+to\s+({_MONTH_DAY_YEAR})",
    re.IGNORECASE,
)
SLASH_RANGE_PATTERN = re.compile(
    r"(\d{1,2}/\d{1,2}/\d{2,4})\s*-\s*(\d{1,2}/\d{1,2}/\d{2,4})"
)

_MONTH_NAME_FORMATS = ("%B %d, %Y", "%b %d, %Y")

DEFAULT_PASSHOLDER_TERMS = ("passholder", "annual pass")

DateParser = Callable[[str, int], date]


def parse_month_day(text: str, year: int) -> date:
    """"March 5" / "Mar 5, 2026" 形式を日付に変換する. 年がなければ year を補う.

    Raises:
        ValueError: 解釈できない場合
    """
    value = " ".join(text.split())
    if not re.search(r"\d{4}", value):
        value = f"{value}, {year}"
    value = re.sub(r"\s*,\s*", ", ", value)

    for fmt in _MONTH_NAME_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognized date: {text!r}")


def parse_slash_date(text: str, year: int) -> date:
    """"3/5/26" / "3/5/2026" 形式を日付に変換する（年は必須なので year は未使用）."""
    fmt = "%m/%d/%Y" if len(text.rsplit("/", 1)[-1]) == 4 else "%m/%d/%y"
    return datetime.strptime(text, fmt).date()


@dataclass(frozen=True)
class DatePattern:
    """有効期間パターンと、その捕捉グループを解釈するパーサの組."""

    pattern: re.Pattern
    parser: DateParser


@dataclass(frozen=True)
class ExtractionRules:
    """ソースごとの抽出ルール."""

    default_window_days: int
    date_patterns: tuple[DatePattern, ...]
    code_patterns: tuple[re.Pattern, ...] = (
        PREFIXED_CODE_PATTERN,
        USE_CODE_PATTERN,
        BARE_CODE_PATTERN,
    )
    passholder_terms: tuple[str, ...] = DEFAULT_PASSHOLDER_TERMS
    description_fallback: str = "{title}"


def has_keyword(text: str, keywords: list[str]) -> bool:
    """小文字化済みテキストにキーワードが1つでも含まれるか."""
    return any(keyword in text for keyword in keywords)


def is_content_deal(item: RawItem) -> bool:
    """記事サイト向けの採用判定: タイトル長・リンク・キーワードがすべて揃うこと."""
    if not item.title or len(item.title) < MIN_TITLE_LENGTH or not item.url:
        return False
    combined = f"{item.title} {item.body}".lower()
    return has_keyword(combined, CONTENT_DEAL_KEYWORDS)


def is_community_deal(item: RawItem) -> bool:
    """コミュニティ投稿向けの採用判定: キーワードまたはエンゲージメント."""
    if not item.title:
        return False
    combined = f"{item.title} {item.body}".lower()
    has_engagement = (
        item.score > REDDIT_MIN_SCORE or item.num_comments > REDDIT_MIN_COMMENTS
    )
    return has_keyword(combined, COMMUNITY_DEAL_KEYWORDS) or has_engagement


def extract_discount(text: str) -> int | None:
    """割引率を抽出する. "up to N%" があればそちらを優先（0% は無視）."""
    up_to = _UP_TO_PATTERN.search(text)
    if up_to and int(up_to.group(1)):
        return int(up_to.group(1))

    discount = _DISCOUNT_PATTERN.search(text)
    if discount:
        return int(discount.group(1))
    return None


def extract_code(text: str, patterns: tuple[re.Pattern, ...]) -> str | None:
    """プロモコードを抽出する. 最初に一致したパターンを採用."""
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return None


def extract_date_range(
    text: str,
    patterns: tuple[DatePattern, ...],
    default_window_days: int,
    today: date,
) -> tuple[date, date]:
    """有効期間 (from, to) を抽出する.

    構造的に一致しても日付として解釈できなければ次のパターンへ進む.
    どれも解釈できなければ (today, today + default_window_days).
    """
    for date_pattern in patterns:
        m = date_pattern.pattern.search(text)
        if not m:
            continue
        try:
            valid_from = date_pattern.parser(m.group(1), today.year)
            valid_to = date_pattern.parser(m.group(2), today.year)
        except ValueError:
            logger.debug("日付解釈失敗、次のパターンへ: %r", m.group(0))
            continue
        return valid_from, valid_to

    return today, today + timedelta(days=default_window_days)


def classify_deal_type(
    text: str, passholder_terms: tuple[str, ...] = DEFAULT_PASSHOLDER_TERMS
) -> str:
    """ディール種別を判定する. 優先順で最初に一致した種別を返す."""
    lowered = text.lower()
    rules = (
        (FREE_DINING, lambda t: "free dining" in t),
        (ROOM_DISCOUNT, lambda t: "room" in t and ("discount" in t or "rate" in t)),
        (PACKAGE_DISCOUNT, lambda t: "package" in t),
        (FREE_NIGHTS, lambda t: "free night" in t),
        (ROOM_UPGRADE, lambda t: "upgrade" in t),
        (PASSHOLDER_EXCLUSIVE, lambda t: any(term in t for term in passholder_terms)),
    )
    for deal_type, matches in rules:
        if matches(lowered):
            return deal_type
    return OTHER


def build_candidate(
    item: RawItem, rules: ExtractionRules, today: date | None = None
) -> DealCandidate | None:
    """RawItem からディール候補を組み立てる. タイトルまたは URL が空なら None."""
    title = item.title.strip()
    url = item.url.strip()
    if not title or not url:
        return None

    today = today or date.today()
    body = item.body.strip()
    combined = f"{title} {body}"

    valid_from, valid_to = extract_date_range(
        combined, rules.date_patterns, rules.default_window_days, today
    )
    fallback = rules.description_fallback.format(title=title)
    description = (body[:DESCRIPTION_MAX_LENGTH] or fallback)[:DESCRIPTION_MAX_LENGTH]

    return DealCandidate(
        title=title[:TITLE_MAX_LENGTH],
        description=description,
        deal_type=classify_deal_type(combined, rules.passholder_terms),
        discount_percentage=extract_discount(combined),
        valid_from=valid_from,
        valid_to=valid_to,
        travel_valid_from=valid_from,
        travel_valid_to=valid_to,
        source_url=url,
        deal_code=extract_code(combined, rules.code_patterns),
    )
