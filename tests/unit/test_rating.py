"""Unit tests for the institute rating aggregate."""

import uuid
from unittest.mock import AsyncMock

import pytest

from app.db.models.database import Institute
from app.libs.formats.number import round_half_up
from app.services.shares.rating import RatingService, compute_rating


class TestComputeRating:
    """Tests for the pure compute_rating function."""

    def test_empty_set_is_zero(self) -> None:
        assert compute_rating([]) == (0.0, 0)

    def test_mean_and_count(self) -> None:
        assert compute_rating([3, 5]) == (4.0, 2)

    @pytest.mark.parametrize(
        "ratings, expected",
        [
            ([4, 5], 4.5),
            ([4, 4, 5], 4.3),
            ([1, 2, 2, 2], 1.8),
            # 4.25 and 4.75 sit exactly on the tie and must round away from zero
            ([4, 4, 4, 5], 4.3),
            ([4, 5, 5, 5], 4.8),
        ],
    )
    def test_rounds_half_away_from_zero(self, ratings, expected) -> None:
        rating, count = compute_rating(ratings)

        assert rating == expected
        assert count == len(ratings)

    def test_round_half_up_differs_from_bankers_rounding(self) -> None:
        assert round_half_up(2.25) == 2.3
        assert round_half_up(2.35) == 2.4


class TestRatingService:
    """Tests for RatingService.update_institute_rating."""

    async def test_only_approved_reviews_count(
        self, db, make_institute, make_user, make_review
    ) -> None:
        institute = await make_institute()
        for rating, approved in ((4, True), (5, True), (5, True), (1, False)):
            await make_review(await make_user(), institute, rating=rating, approved=approved)

        result = await RatingService(db).update_institute_rating(institute.id)

        refreshed = await db.get(Institute, institute.id, populate_existing=True)
        assert result == (4.7, 3)
        assert refreshed.rating == 4.7
        assert refreshed.reviews_count == 3
        assert refreshed.last_rating_update is not None

    async def test_no_approved_reviews_resets_to_zero(
        self, db, make_institute, make_user, make_review
    ) -> None:
        institute = await make_institute(rating=4.2, reviews_count=7)
        await make_review(await make_user(), institute, rating=5, approved=False)

        await RatingService(db).update_institute_rating(institute.id)

        refreshed = await db.get(Institute, institute.id, populate_existing=True)
        assert refreshed.rating == 0
        assert refreshed.reviews_count == 0

    async def test_failure_is_logged_and_swallowed(self) -> None:
        session = AsyncMock()
        session.scalars.side_effect = RuntimeError("database went away")

        result = await RatingService(session).update_institute_rating(uuid.uuid4())

        assert result is None
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
