"""extractor モジュールのユニットテスト."""

from datetime import date, timedelta

import pytest

from wdw_deals.extractor import (
    build_candidate,
    classify_deal_type,
    extract_code,
    extract_date_range,
    extract_discount,
    is_community_deal,
    is_content_deal,
    parse_month_day,
    parse_slash_date,
)
from wdw_deals.models import RawItem
from wdw_deals.sources import AllEarsSource, RedditSource

TODAY = date(2026, 3, 1)
ALLEARS_RULES = AllEarsSource.rules
REDDIT_RULES = RedditSource.rules


class TestExtractDiscount:
    """extract_discount のテスト."""

    def test_percent_off(self):
        assert extract_discount("Save 25% off park tickets") == 25

    def test_percent_savings(self):
        assert extract_discount("Enjoy 15% savings on dining") == 15

    def test_up_to_wins(self):
        """"up to N%" が "N% off" より優先されること."""
        assert extract_discount("Get 10% off now, or up to 30% on select resorts") == 30

    def test_up_to_case_insensitive(self):
        assert extract_discount("UP TO 40% on rooms") == 40

    def test_up_to_zero_falls_back(self):
        """"up to 0%" は無視して "N% off" を採用すること."""
        assert extract_discount("Up to 0% surcharge, plus 15% off dining") == 15
        assert extract_discount("up to 0% on tickets") is None

    def test_no_discount(self):
        assert extract_discount("Free dining returns this summer") is None


class TestExtractCode:
    """extract_code のテスト."""

    def test_prefixed_code(self):
        assert extract_code("Use code: PIXIE25 at checkout", REDDIT_RULES.code_patterns) == "PIXIE25"

    def test_use_token(self):
        assert extract_code("just use MAGIC24 when booking", REDDIT_RULES.code_patterns) == "MAGIC24"

    def test_bare_token(self):
        assert extract_code("Book with SUMMER26 today", REDDIT_RULES.code_patterns) == "SUMMER26"

    def test_bare_token_is_case_sensitive(self):
        assert extract_code("book with summer26 today", REDDIT_RULES.code_patterns) is None

    def test_first_pattern_wins(self):
        text = "Promo: FIRST1 or use SECOND2"
        assert extract_code(text, REDDIT_RULES.code_patterns) == "FIRST1"

    def test_allears_only_prefixed(self):
        assert extract_code("Book with SUMMER26 today", ALLEARS_RULES.code_patterns) is None
        assert extract_code("Code: WDW2026", ALLEARS_RULES.code_patterns) == "WDW2026"


class TestParseDates:
    """parse_month_day / parse_slash_date のテスト."""

    def test_month_day_injects_year(self):
        assert parse_month_day("March 5", 2026) == date(2026, 3, 5)

    def test_abbreviated_month_with_year(self):
        assert parse_month_day("Jan 5, 2027", 2026) == date(2027, 1, 5)

    def test_irregular_spacing(self):
        assert parse_month_day("Jan  5,2027", 2026) == date(2027, 1, 5)

    def test_not_a_month(self):
        with pytest.raises(ValueError):
            parse_month_day("Room 12", 2026)

    def test_slash_four_digit_year(self):
        assert parse_slash_date("6/1/2026", 2025) == date(2026, 6, 1)

    def test_slash_two_digit_year(self):
        assert parse_slash_date("8/31/26", 2025) == date(2026, 8, 31)


class TestExtractDateRange:
    """extract_date_range のテスト."""

    def test_month_day_range(self):
        result = extract_date_range(
            "Valid March 5 - April 20", ALLEARS_RULES.date_patterns, 120, TODAY
        )
        assert result == (date(2026, 3, 5), date(2026, 4, 20))

    def test_range_with_years(self):
        result = extract_date_range(
            "Stays Jan 5, 2027 through Feb 10, 2027", ALLEARS_RULES.date_patterns, 120, TODAY
        )
        assert result == (date(2027, 1, 5), date(2027, 2, 10))

    def test_unparseable_match_falls_through(self):
        """構造的に一致しても解釈できなければ次のパターンを試すこと."""
        text = "Room 12 to Suite 14, from June 3 to June 9"
        result = extract_date_range(text, ALLEARS_RULES.date_patterns, 120, TODAY)
        assert result == (date(2026, 6, 3), date(2026, 6, 9))

    def test_slash_range(self):
        result = extract_date_range(
            "Stays 6/1/2026 - 8/31/2026", REDDIT_RULES.date_patterns, 90, TODAY
        )
        assert result == (date(2026, 6, 1), date(2026, 8, 31))

    def test_default_window(self):
        result = extract_date_range("No dates here", ALLEARS_RULES.date_patterns, 120, TODAY)
        assert result == (TODAY, TODAY + timedelta(days=120))

    def test_default_window_when_nothing_parses(self):
        result = extract_date_range("Suite 12 to Villa 14", REDDIT_RULES.date_patterns, 90, TODAY)
        assert result == (TODAY, TODAY + timedelta(days=90))


class TestClassifyDealType:
    """classify_deal_type のテスト."""

    def test_free_dining_beats_passholder(self):
        """free dining と passholder の両方を含む場合は free_dining."""
        assert classify_deal_type("Free Dining offer for Passholders") == "free_dining"

    def test_room_discount(self):
        assert classify_deal_type("New room discount announced") == "room_discount"

    def test_room_rate(self):
        assert classify_deal_type("Lower room rates in August") == "room_discount"

    def test_package(self):
        assert classify_deal_type("Vacation package savings") == "package_discount"

    def test_free_nights(self):
        assert classify_deal_type("Stay 5, get a free night") == "free_nights"

    def test_upgrade(self):
        assert classify_deal_type("Complimentary upgrade at Poly") == "room_upgrade"

    def test_annual_pass(self):
        assert classify_deal_type("Annual Pass perks this fall") == "passholder_exclusive"

    def test_ap_shorthand_only_with_community_terms(self):
        text = "Great AP perks this week"
        assert classify_deal_type(text) == "other"
        assert classify_deal_type(text, REDDIT_RULES.passholder_terms) == "passholder_exclusive"

    def test_other(self):
        assert classify_deal_type("New parade debuts") == "other"


class TestInclusionRules:
    """is_content_deal / is_community_deal のテスト."""

    def test_content_keyword(self):
        item = RawItem(title="Save big on resort rooms this fall", body="", url="https://allears.net/a/")
        assert is_content_deal(item) is True

    def test_content_keyword_in_body(self):
        item = RawItem(title="Resort news for this fall", body="Limited offer", url="https://allears.net/a/")
        assert is_content_deal(item) is True

    def test_content_short_title(self):
        item = RawItem(title="Save 10%", body="", url="https://allears.net/a/")
        assert is_content_deal(item) is False

    def test_content_missing_link(self):
        item = RawItem(title="Save big on resort rooms this fall", body="", url="")
        assert is_content_deal(item) is False

    def test_content_no_keyword(self):
        item = RawItem(title="Magic Kingdom parade schedule update", body="", url="https://allears.net/a/")
        assert is_content_deal(item) is False

    def test_content_ignores_engagement(self):
        item = RawItem(
            title="Magic Kingdom parade schedule update", body="",
            url="https://allears.net/a/", score=500, num_comments=100,
        )
        assert is_content_deal(item) is False

    def test_community_keyword_only(self):
        item = RawItem(title="Cheap flights to MCO", body="", url="u")
        assert is_community_deal(item) is True

    def test_community_score_only(self):
        item = RawItem(title="Which park should we visit first", body="", url="u", score=11)
        assert is_community_deal(item) is True

    def test_community_comments_only(self):
        item = RawItem(title="Which park should we visit first", body="", url="u", num_comments=6)
        assert is_community_deal(item) is True

    def test_community_below_threshold(self):
        item = RawItem(
            title="Which park should we visit first", body="", url="u",
            score=10, num_comments=5,
        )
        assert is_community_deal(item) is False

    def test_community_empty_title(self):
        item = RawItem(title="", body="discount", url="u", score=100)
        assert is_community_deal(item) is False


class TestBuildCandidate:
    """build_candidate のテスト."""

    def test_truncation(self):
        item = RawItem(title="A" * 250, body="B" * 600, url="https://allears.net/long/")
        candidate = build_candidate(item, ALLEARS_RULES, TODAY)

        assert len(candidate.title) == 200
        assert len(candidate.description) == 500

    def test_description_falls_back_to_title(self):
        item = RawItem(title="Special offer on rooms", body="", url="https://allears.net/a/")
        candidate = build_candidate(item, ALLEARS_RULES, TODAY)
        assert candidate.description == "Special offer on rooms"

    def test_community_description_fallback(self):
        item = RawItem(title="Passholder discount", body="", url="https://www.reddit.com/r/x/")
        candidate = build_candidate(item, REDDIT_RULES, TODAY)
        assert candidate.description == "Reddit community post: Passholder discount"

    def test_travel_dates_mirror_valid_dates(self):
        item = RawItem(title="Free dining July 6 through August 20", body="", url="u")
        candidate = build_candidate(item, ALLEARS_RULES, TODAY)

        assert candidate.valid_from == date(2026, 7, 6)
        assert candidate.valid_to == date(2026, 8, 20)
        assert candidate.travel_valid_from == candidate.valid_from
        assert candidate.travel_valid_to == candidate.valid_to

    def test_default_windows_differ_by_source(self):
        item = RawItem(title="Special savings on rooms", body="", url="u")

        allears = build_candidate(item, ALLEARS_RULES, TODAY)
        reddit = build_candidate(item, REDDIT_RULES, TODAY)

        assert allears.valid_to == TODAY + timedelta(days=120)
        assert reddit.valid_to == TODAY + timedelta(days=90)

    def test_full_candidate(self):
        item = RawItem(
            title="PSA: Up to 30% off rooms with code MAGIC2026",
            body="Stays 6/1/2026 - 8/31/2026.",
            url="https://www.reddit.com/r/WaltDisneyWorld/comments/abc123/psa/",
        )
        candidate = build_candidate(item, REDDIT_RULES, TODAY)

        assert candidate.discount_percentage == 30
        assert candidate.deal_code == "MAGIC2026"
        assert candidate.deal_type == "other"
        assert candidate.valid_from == date(2026, 6, 1)
        assert candidate.source_url == item.url

    def test_blank_title(self):
        item = RawItem(title="   ", body="discount", url="u")
        assert build_candidate(item, ALLEARS_RULES, TODAY) is None

    def test_blank_url(self):
        """URL が空の投稿（permalink なし）は候補にしないこと."""
        item = RawItem(title="Resort rate drop for October", body="", url="  ")
        assert build_candidate(item, REDDIT_RULES, TODAY) is None

    def test_to_row_dates_are_iso(self):
        item = RawItem(title="Special savings on rooms", body="", url="u")
        row = build_candidate(item, ALLEARS_RULES, TODAY).to_row()

        assert row["valid_from"] == "2026-03-01"
        assert row["travel_valid_to"] == "2026-06-29"
