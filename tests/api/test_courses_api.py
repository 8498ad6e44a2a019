"""API tests for /api/courses."""

from app.db.models.database import Institute


def course_payload(**overrides) -> dict:
    payload = {
        "title": "  NEET Crash Course ",
        "description": "Ninety day revision programme for NEET",
        "duration": "3 months",
        "price": 1499.999,
        "category": "competitive",
        "curriculum": [
            {"moduleTitle": "Biology", "topics": ["Genetics", "Ecology"]},
        ],
    }
    payload.update(overrides)
    return payload


class TestCourseCatalogue:
    """Public course endpoints."""

    async def test_list_with_filters(self, client, make_institute, make_course) -> None:
        institute = await make_institute()
        await make_course(institute)
        await make_course(
            institute,
            title="Spoken English",
            description="Conversational English for working adults",
            category="language",
        )

        everything = await client.get("/api/courses")
        language = await client.get("/api/courses", params={"category": "language"})
        search = await client.get("/api/courses", params={"search": "jee"})

        assert everything.status_code == 200
        assert everything.json()["total"] == 2
        assert everything.json()["currentPage"] == 1
        assert everything.json()["totalPages"] == 1
        assert [c["title"] for c in language.json()["courses"]] == ["Spoken English"]
        assert [c["title"] for c in search.json()["courses"]] == ["JEE Foundation"]

    async def test_by_institute(self, client, make_institute, make_course) -> None:
        mine = await make_institute()
        other = await make_institute(name="Other Academy")
        await make_course(mine)
        await make_course(other)

        response = await client.get(f"/api/courses/institute/{mine.id}")

        assert response.status_code == 200
        courses = response.json()["courses"]
        assert len(courses) == 1
        assert courses[0]["institute"]["id"] == str(mine.id)

    async def test_missing_course(self, client) -> None:
        response = await client.get("/api/courses/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Course not found"}


class TestCourseManagement:
    """Institute/admin course endpoints."""

    async def test_institute_creates_course_for_itself(
        self, client, db, make_institute, auth_headers
    ) -> None:
        institute = await make_institute()

        response = await client.post(
            "/api/courses",
            headers=await auth_headers(institute, "institute"),
            json=course_payload(),
        )

        assert response.status_code == 201
        course = response.json()["course"]
        assert course["title"] == "NEET Crash Course"
        assert course["price"] == 1500.0
        assert course["originalPrice"] == 1500.0
        assert course["status"] == "draft"
        assert course["instituteId"] == str(institute.id)
        assert course["curriculum"][0]["moduleTitle"] == "Biology"
        refreshed = await db.get(Institute, institute.id, populate_existing=True)
        assert refreshed.courses_count == 1

    async def test_institute_cannot_create_for_another(
        self, client, make_institute, auth_headers
    ) -> None:
        mine = await make_institute()
        other = await make_institute(name="Other Academy")

        response = await client.post(
            "/api/courses",
            headers=await auth_headers(mine, "institute"),
            json=course_payload(institute=str(other.id)),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "INSTITUTE_OWNER_REQUIRED"

    async def test_admin_must_name_the_institute(self, client, make_admin, auth_headers) -> None:
        response = await client.post(
            "/api/courses",
            headers=await auth_headers(await make_admin(), "admin"),
            json=course_payload(),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INSTITUTE_ID_REQUIRED"

    async def test_users_cannot_create(self, client, make_user, auth_headers) -> None:
        response = await client.post(
            "/api/courses",
            headers=await auth_headers(await make_user()),
            json=course_payload(),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "ROLE_FORBIDDEN"

    async def test_negative_price_is_rejected(self, client, make_institute, auth_headers) -> None:
        institute = await make_institute()

        response = await client.post(
            "/api/courses",
            headers=await auth_headers(institute, "institute"),
            json=course_payload(price=-1),
        )

        assert response.status_code == 400

    async def test_partial_update(self, client, make_institute, make_course, auth_headers) -> None:
        institute = await make_institute()
        course = await make_course(institute)

        response = await client.put(
            f"/api/courses/{course.id}",
            headers=await auth_headers(institute, "institute"),
            json={"status": "archived", "tags": ["jee", "physics"]},
        )

        assert response.status_code == 200
        body = response.json()["course"]
        assert body["status"] == "archived"
        assert body["tags"] == ["jee", "physics"]
        assert body["title"] == "JEE Foundation"

    async def test_other_institute_cannot_update(
        self, client, make_institute, make_course, auth_headers
    ) -> None:
        course = await make_course(await make_institute())
        intruder = await make_institute(name="Intruder Classes")

        response = await client.put(
            f"/api/courses/{course.id}",
            headers=await auth_headers(intruder, "institute"),
            json={"price": 1},
        )

        assert response.status_code == 403

    async def test_delete_refreshes_counter(
        self, client, db, make_institute, make_course, make_admin, auth_headers
    ) -> None:
        institute = await make_institute(courses_count=1)
        course = await make_course(institute)

        response = await client.delete(
            f"/api/courses/{course.id}", headers=await auth_headers(await make_admin(), "admin")
        )

        assert response.status_code == 200
        refreshed = await db.get(Institute, institute.id, populate_existing=True)
        assert refreshed.courses_count == 0

    async def test_body_institute_takes_precedence_over_query(
        self, client, make_institute, auth_headers
    ) -> None:
        mine = await make_institute()
        other = await make_institute(name="Other Academy")

        response = await client.post(
            "/api/courses",
            params={"institute": str(other.id)},
            headers=await auth_headers(mine, "institute"),
            json=course_payload(institute=str(mine.id)),
        )

        assert response.status_code == 201
        assert response.json()["course"]["instituteId"] == str(mine.id)

    async def test_admin_can_name_the_institute_in_the_query(
        self, client, make_institute, make_admin, auth_headers
    ) -> None:
        institute = await make_institute()

        response = await client.post(
            "/api/courses",
            params={"institute": str(institute.id)},
            headers=await auth_headers(await make_admin(), "admin"),
            json=course_payload(),
        )

        assert response.status_code == 201
        assert response.json()["course"]["instituteId"] == str(institute.id)

    async def test_delete_is_gated_on_the_course_owner(
        self, client, make_institute, make_course, auth_headers
    ) -> None:
        course = await make_course(await make_institute())
        intruder = await make_institute(name="Intruder Classes")

        response = await client.delete(
            f"/api/courses/{course.id}",
            params={"institute": str(intruder.id)},
            headers=await auth_headers(intruder, "institute"),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "INSTITUTE_OWNER_REQUIRED"


class TestPagingBounds:
    async def test_page_beyond_limit_is_rejected(self, client) -> None:
        courses = await client.get("/api/courses", params={"page": 10**20})
        reviews = await client.get("/api/reviews", params={"page": 10_001})
        by_institute = await client.get(
            "/api/courses/institute/00000000-0000-0000-0000-000000000000",
            params={"page": 10_001},
        )

        for response in (courses, reviews, by_institute):
            assert response.status_code == 400
            assert response.json()["success"] is False
