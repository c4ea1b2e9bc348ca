"""外部ソースの HTTP 取得モジュール."""

from __future__ import annotations

import logging

import requests

from wdw_deals.config import REQUEST_TIMEOUT
from wdw_deals.errors import FetchError

logger = logging.getLogger(__name__)


def _get(url: str, user_agent: str, session: requests.Session | None) -> requests.Response:
    headers = {"User-Agent": user_agent}
    http = session or requests

    try:
        resp = http.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error("取得失敗: url=%s, error=%s", url, e)
        raise FetchError(f"HTTP error! {e}") from e

    return resp


def fetch_text(
    url: str, user_agent: str, session: requests.Session | None = None
) -> str:
    """ページの HTML を取得する.

    Raises:
        FetchError: 非 2xx ステータスまたは通信エラー
    """
    return _get(url, user_agent, session).text


def fetch_json(
    url: str, user_agent: str, session: requests.Session | None = None
):
    """JSON API を取得してパース済みの値を返す.

    Raises:
        FetchError: 非 2xx ステータス・通信エラー・JSON デコード失敗
    """
    resp = _get(url, user_agent, session)
    try:
        return resp.json()
    except ValueError as e:
        logger.error("JSON デコード失敗: url=%s, error=%s", url, e)
        raise FetchError(f"Invalid JSON from {url}: {e}") from e
