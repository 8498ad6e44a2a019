"""Unit tests for the small formatting helpers."""

from datetime import datetime

from app.libs.formats.datetime import month_label, months_back
from app.libs.formats.text import like_pattern, normalize_email
from app.services.shares.dashboard import bucket_by_month


class TestText:
    def test_like_pattern_escapes_wildcards(self) -> None:
        assert like_pattern("100%_off") == "%100\\%\\_off%"

    def test_like_pattern_collapses_whitespace(self) -> None:
        assert like_pattern("  spoken   english ") == "%spoken english%"

    def test_normalize_email(self) -> None:
        assert normalize_email("  Asha@Example.COM ") == "asha@example.com"


class TestMonths:
    def test_months_back_crosses_year_boundary(self) -> None:
        months = months_back(3, reference=datetime(2024, 2, 10))

        assert months == [(2023, 12), (2024, 1), (2024, 2)]
        assert [month_label(y, m) for y, m in months] == ["Dec", "Jan", "Feb"]

    def test_bucket_by_month_ignores_out_of_range(self) -> None:
        months = [(2024, 1), (2024, 2)]
        stamps = [
            datetime(2024, 1, 5),
            datetime(2024, 2, 1),
            datetime(2024, 2, 28),
            datetime(2023, 12, 31),
        ]

        assert bucket_by_month(stamps, months) == {(2024, 1): 1, (2024, 2): 2}
