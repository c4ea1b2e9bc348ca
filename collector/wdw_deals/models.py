"""データモデル定義."""

from dataclasses import asdict, dataclass
from datetime import date

# deal_type の取りうる値
FREE_DINING = "free_dining"
ROOM_DISCOUNT = "room_discount"
PACKAGE_DISCOUNT = "package_discount"
FREE_NIGHTS = "free_nights"
ROOM_UPGRADE = "room_upgrade"
PASSHOLDER_EXCLUSIVE = "passholder_exclusive"
OTHER = "other"

DEAL_TYPES = (
    FREE_DINING,
    ROOM_DISCOUNT,
    PACKAGE_DISCOUNT,
    FREE_NIGHTS,
    ROOM_UPGRADE,
    PASSHOLDER_EXCLUSIVE,
    OTHER,
)


@dataclass
class RawItem:
    """ソースから取り出した抽出前の1件."""

    title: str
    body: str
    url: str  # 絶対 URL
    score: int = 0  # コミュニティ系のみ
    num_comments: int = 0  # コミュニティ系のみ


@dataclass
class DealCandidate:
    """抽出済みのディール候補. source_url が一意キー."""

    title: str
    description: str
    deal_type: str
    discount_percentage: int | None
    valid_from: date
    valid_to: date
    travel_valid_from: date
    travel_valid_to: date
    source_url: str
    deal_code: str | None = None

    def __post_init__(self):
        if self.deal_type not in DEAL_TYPES:
            raise ValueError(f"Invalid deal_type: {self.deal_type}")

    def to_row(self) -> dict:
        """deals テーブルに書き込む dict に変換する（日付は YYYY-MM-DD）."""
        row = asdict(self)
        for key in ("valid_from", "valid_to", "travel_valid_from", "travel_valid_to"):
            row[key] = row[key].isoformat()
        return row


@dataclass
class RunResult:
    """1ソース分の集約結果."""

    source: str
    success: bool
    deals_found: int = 0
    deals_saved: int = 0
    error: str | None = None
