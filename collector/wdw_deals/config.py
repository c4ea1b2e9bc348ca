"""設定モジュール（環境変数・定数定義）."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- Supabase ---
# クライアントは初回利用時に生成するため、未設定でも import は通る
SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "")
SUPABASE_SECRET_KEY: str = os.environ.get("SUPABASE_SECRET_KEY", "")
SUPABASE_SCHEMA: str = os.environ.get("SUPABASE_SCHEMA", "public")

DEAL_SOURCES_TABLE = "deal_sources"
DEALS_TABLE = "deals"

# --- AllEars.net ---
ALLEARS_SOURCE_NAME = "AllEars.net"
ALLEARS_BASE_URL = "https://allears.net"
ALLEARS_DEALS_URL = (
    "https://allears.net/category/walt-disney-world/wdw-planning/wdw-deals/"
)
ALLEARS_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
)
ALLEARS_DEFAULT_WINDOW_DAYS = 120

# --- Reddit r/WaltDisneyWorld ---
REDDIT_SOURCE_NAME = "Reddit WaltDisneyWorld"
REDDIT_BASE_URL = "https://www.reddit.com"
REDDIT_PAGE_SIZE = 25
REDDIT_HOT_URL = (
    f"https://www.reddit.com/r/WaltDisneyWorld/hot.json?limit={REDDIT_PAGE_SIZE}"
)
REDDIT_USER_AGENT = "Disney-Deal-Tracker/1.0"
REDDIT_DEFAULT_WINDOW_DAYS = 90

# エンゲージメント判定（どちらかを超えれば採用）
REDDIT_MIN_SCORE = 10
REDDIT_MIN_COMMENTS = 5

# --- 抽出キーワード ---
CONTENT_DEAL_KEYWORDS = [
    "discount", "save", "deal", "offer", "promo", "free", "%", "special",
]
COMMUNITY_DEAL_KEYWORDS = [
    "discount", "save", "deal", "offer", "promo", "code",
    "free", "%", "off", "special", "resort rate", "room rate",
    "cheap", "price", "booking", "passholder",
]
MIN_TITLE_LENGTH = 10

# --- 文字数上限 ---
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500

# --- リクエスト設定 ---
REQUEST_TIMEOUT = 15  # 秒

# --- ログ ---
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
LOG_DIR.mkdir(exist_ok=True)
