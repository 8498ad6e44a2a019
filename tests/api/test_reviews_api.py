"""API tests for /api/reviews, including the institute rating aggregate."""

import uuid

COMMENT = "Teachers explain every concept patiently."


async def institute_stats(client, institute) -> dict:
    response = await client.get(f"/api/institutes/{institute.id}")
    assert response.status_code == 200
    return response.json()["institute"]["stats"]


async def post_review(client, headers, institute, rating: int, comment: str = COMMENT):
    return await client.post(
        "/api/reviews",
        headers=headers,
        json={"institute": str(institute.id), "rating": rating, "comment": comment},
    )


class TestRatingAggregate:
    """The institute rating follows the approved reviews through every moderation step."""

    async def test_create_flag_delete_scenario(
        self, client, make_institute, make_user, make_admin, auth_headers
    ) -> None:
        institute = await make_institute()
        first = await make_user(role="admin")
        second = await make_user(role="admin")
        moderator = await make_admin()

        low = await post_review(client, await auth_headers(first), institute, 3)
        high = await post_review(client, await auth_headers(second), institute, 5)

        assert low.status_code == 201
        assert low.json()["requiresApproval"] is False
        stats = await institute_stats(client, institute)
        assert (stats["rating"], stats["reviewsCount"]) == (4.0, 2)

        flagged = await client.put(
            f"/api/reviews/{high.json()['review']['id']}/flag",
            headers=await auth_headers(moderator, "admin"),
            json={"flag": True, "reason": "Spam"},
        )
        assert flagged.status_code == 200
        assert flagged.json()["review"]["flagged"] is True
        assert flagged.json()["review"]["approved"] is False
        stats = await institute_stats(client, institute)
        assert (stats["rating"], stats["reviewsCount"]) == (3.0, 1)

        deleted = await client.delete(
            f"/api/reviews/{low.json()['review']['id']}",
            headers=await auth_headers(first),
        )
        assert deleted.status_code == 200
        stats = await institute_stats(client, institute)
        assert (stats["rating"], stats["reviewsCount"]) == (0, 0)

    async def test_user_review_waits_for_approval(
        self, client, make_institute, make_user, make_admin, auth_headers
    ) -> None:
        institute = await make_institute()
        user = await make_user()
        admin = await make_admin()

        created = await post_review(client, await auth_headers(user), institute, 4)

        assert created.status_code == 201
        assert created.json()["requiresApproval"] is True
        assert created.json()["review"]["approved"] is False
        stats = await institute_stats(client, institute)
        assert stats["reviewsCount"] == 0

        approved = await client.put(
            f"/api/reviews/{created.json()['review']['id']}/approve",
            headers=await auth_headers(admin, "admin"),
        )

        assert approved.status_code == 200
        review = approved.json()["review"]
        assert review["approved"] is True
        assert review["flagged"] is False
        assert review["approvedBy"] == str(admin.id)
        stats = await institute_stats(client, institute)
        assert (stats["rating"], stats["reviewsCount"]) == (4.0, 1)

    async def test_rating_change_by_admin_recomputes(
        self, client, make_institute, make_user, auth_headers
    ) -> None:
        institute = await make_institute()
        admin = await make_user(role="admin")
        headers = await auth_headers(admin)
        created = await post_review(client, headers, institute, 2)

        updated = await client.put(
            f"/api/reviews/{created.json()['review']['id']}",
            headers=headers,
            json={"rating": 5},
        )

        assert updated.status_code == 200
        assert updated.json()["requiresApproval"] is False
        stats = await institute_stats(client, institute)
        assert stats["rating"] == 5.0

    async def test_comment_edit_by_author_sends_back_to_moderation(
        self, client, make_institute, make_user, make_review, auth_headers
    ) -> None:
        institute = await make_institute()
        user = await make_user()
        review = await make_review(user, institute, rating=5)

        updated = await client.put(
            f"/api/reviews/{review.id}",
            headers=await auth_headers(user),
            json={"comment": "Changed my mind about the batch size."},
        )

        assert updated.status_code == 200
        assert updated.json()["requiresApproval"] is True
        assert updated.json()["review"]["approved"] is False
        stats = await institute_stats(client, institute)
        assert stats["reviewsCount"] == 0

    async def test_unflag_keeps_review_unapproved(
        self, client, make_institute, make_user, make_admin, make_review, auth_headers
    ) -> None:
        institute = await make_institute()
        review = await make_review(await make_user(), institute, flagged=True, approved=False)
        admin = await make_admin()

        response = await client.put(
            f"/api/reviews/{review.id}/flag",
            headers=await auth_headers(admin, "admin"),
            json={"flag": False},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Review unflagged successfully"
        body = response.json()["review"]
        assert body["flagged"] is False
        assert body["flagReason"] is None
        assert body["approved"] is False

    async def test_approving_a_flagged_review_clears_the_flag(
        self, client, make_institute, make_user, make_admin, make_review, auth_headers
    ) -> None:
        institute = await make_institute()
        await make_review(await make_user(), institute, rating=2)
        review = await make_review(
            await make_user(),
            institute,
            rating=5,
            flagged=True,
            flag_reason="Spam",
            approved=False,
        )

        response = await client.put(
            f"/api/reviews/{review.id}/approve",
            headers=await auth_headers(await make_admin(), "admin"),
        )

        assert response.status_code == 200
        body = response.json()["review"]
        assert body["approved"] is True
        assert body["flagged"] is False
        assert body["flagReason"] is None
        stats = await institute_stats(client, institute)
        assert (stats["rating"], stats["reviewsCount"]) == (3.5, 2)


class TestReviewRules:
    """Validation and permission rules of the review endpoints."""

    async def test_second_review_for_same_institute_is_rejected(
        self, client, make_institute, make_user, auth_headers
    ) -> None:
        institute = await make_institute()
        headers = await auth_headers(await make_user())

        await post_review(client, headers, institute, 4)
        again = await post_review(client, headers, institute, 2)

        assert again.status_code == 400
        assert again.json()["message"] == "You have already reviewed this institute"

    async def test_short_comment_is_rejected(
        self, client, make_institute, make_user, auth_headers
    ) -> None:
        institute = await make_institute()

        response = await post_review(
            client, await auth_headers(await make_user()), institute, 4, comment="meh"
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_institute_account_cannot_write_reviews(
        self, client, make_institute, auth_headers
    ) -> None:
        institute = await make_institute()

        response = await post_review(
            client, await auth_headers(institute, "institute"), institute, 5
        )

        assert response.status_code == 403
        assert response.json()["code"] == "USER_ACCOUNT_REQUIRED"

    async def test_unknown_institute_is_404(self, client, make_user, auth_headers) -> None:
        response = await client.post(
            "/api/reviews",
            headers=await auth_headers(await make_user()),
            json={"institute": str(uuid.uuid4()), "rating": 4, "comment": COMMENT},
        )

        assert response.status_code == 404

    async def test_user_cannot_approve(
        self, client, make_institute, make_user, make_review, auth_headers
    ) -> None:
        user = await make_user()
        review = await make_review(user, await make_institute(), approved=False)

        response = await client.put(
            f"/api/reviews/{review.id}/approve", headers=await auth_headers(user)
        )

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "ROLE_FORBIDDEN"
        assert body["requiredRoles"] == ["admin"]
        assert body["userRole"] == "user"

    async def test_malformed_review_id(self, client, make_user, auth_headers) -> None:
        response = await client.get(
            "/api/reviews/not-a-uuid", headers=await auth_headers(await make_user())
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid review_id"

    async def test_other_user_cannot_edit(
        self, client, make_institute, make_user, make_review, auth_headers
    ) -> None:
        review = await make_review(await make_user(), await make_institute())

        response = await client.put(
            f"/api/reviews/{review.id}",
            headers=await auth_headers(await make_user()),
            json={"rating": 1},
        )

        assert response.status_code == 403

    async def test_institute_flags_only_its_own_reviews(
        self, client, make_institute, make_user, make_review, auth_headers
    ) -> None:
        mine = await make_institute()
        other = await make_institute(name="Other Academy")
        review = await make_review(await make_user(), other)

        response = await client.put(
            f"/api/reviews/{review.id}/flag",
            headers=await auth_headers(mine, "institute"),
            json={"flag": True, "reason": "Not ours"},
        )

        assert response.status_code == 403


class TestReviewListing:
    """Listing and statistics."""

    async def test_default_listing_hides_pending_and_flagged(
        self, client, make_institute, make_user, make_review
    ) -> None:
        institute = await make_institute()
        await make_review(await make_user(), institute, rating=5)
        await make_review(await make_user(), institute, rating=4, approved=False)
        await make_review(await make_user(), institute, rating=1, approved=False, flagged=True)

        response = await client.get("/api/reviews", params={"institute": str(institute.id)})

        assert response.status_code == 200
        data = response.json()
        assert [r["rating"] for r in data["reviews"]] == [5]
        assert data["pagination"]["total"] == 1
        assert data["statistics"]["averageRating"] == 5.0

    async def test_status_filters(
        self, client, make_institute, make_user, make_review
    ) -> None:
        institute = await make_institute()
        await make_review(await make_user(), institute, rating=5)
        await make_review(await make_user(), institute, rating=4, approved=False)
        await make_review(await make_user(), institute, rating=1, approved=False, flagged=True)

        async def total(status: str) -> int:
            response = await client.get(
                "/api/reviews", params={"institute": str(institute.id), "status": status}
            )
            return response.json()["pagination"]["total"]

        assert await total("all") == 3
        assert await total("pending") == 2
        assert await total("flagged") == 1

    async def test_stats_for_institute_account(
        self, client, make_institute, make_user, make_review, auth_headers
    ) -> None:
        institute = await make_institute()
        other = await make_institute(name="Other Academy")
        await make_review(await make_user(), institute, rating=5)
        await make_review(await make_user(), institute, rating=3, approved=False)
        await make_review(await make_user(), institute, rating=1, approved=False, flagged=True)
        await make_review(await make_user(), other, rating=2)

        response = await client.get(
            "/api/reviews/stats", headers=await auth_headers(institute, "institute")
        )

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["totalReviews"] == 3
        assert stats["approvedReviews"] == 1
        assert stats["pendingReviews"] == 1
        assert stats["flaggedReviews"] == 1
        assert stats["averageRating"] == 3.0
