"""
Tests for the travel planner API methods: payload shapes and response handling.
"""

import pytest

from planner_client.credential_store import ACCESS_TOKEN, REFRESH_TOKEN
from planner_client.error_handler import InvalidResponseError
from planner_client.models import TravelPlan


class TestAuthMethods:
    @pytest.mark.asyncio
    async def test_login_returns_body_and_stores_tokens(self, client, backend, store):
        store.clear()
        data = await client.login("ana@example.com", "secret")

        assert data["access_token"] == "old-token"
        assert backend.bodies["/login"] == {"email": "ana@example.com", "password": "secret"}
        assert store.get(ACCESS_TOKEN) == "old-token"
        assert store.get(REFRESH_TOKEN) == "refresh-1"

    @pytest.mark.asyncio
    async def test_register_omits_missing_nickname(self, client, backend):
        await client.register(email="ana@example.com", username="ana", password="pw")

        assert backend.bodies["/users/register"] == {
            "email": "ana@example.com",
            "username": "ana",
            "password": "pw",
        }

    @pytest.mark.asyncio
    async def test_logout_clears_both_tokens(self, client, store):
        assert client.is_authenticated()
        client.logout()

        assert not client.is_authenticated()
        assert store.get(REFRESH_TOKEN) is None


class TestProfile:
    @pytest.mark.asyncio
    async def test_get_profile(self, client):
        profile = await client.get_user_profile()
        assert profile["nickname"] == "ana"

    @pytest.mark.asyncio
    async def test_update_profile_uses_camel_case(self, client, backend):
        await client.update_profile(current_password="old", new_password="new")

        assert backend.bodies["/users/profile"] == {
            "currentPassword": "old",
            "newPassword": "new",
        }


class TestTravelPlanner:
    @pytest.mark.asyncio
    async def test_generate_plan_coerces_duration(self, client, backend):
        plan = await client.generate_travel_plan("Kyoto", "2", interests="temples")

        assert backend.bodies["/ai/plan"] == {
            "destination": "Kyoto",
            "duration": 2,
            "interests": "temples",
        }
        assert isinstance(plan, TravelPlan)
        assert plan.destination == "Kyoto"
        assert len(plan.plan.days) == 2
        assert plan.plan.days[0].activities[0].location == "Fushimi Inari"
        assert plan.plan.days[1].activities[0].tips is None

    @pytest.mark.asyncio
    async def test_generate_plan_rejects_bad_structure(self, client, backend):
        backend.routes[("POST", "/ai/plan")] = (200, {"destination": "Kyoto"})

        with pytest.raises(InvalidResponseError) as exc_info:
            await client.generate_travel_plan("Kyoto", 2)

        assert str(exc_info.value) == "Invalid response structure from server"

    @pytest.mark.asyncio
    async def test_generate_plan_rejects_non_numeric_duration(self, client, backend):
        with pytest.raises(ValueError):
            await client.generate_travel_plan("Kyoto", "a week")

        assert backend.tokens_seen("/ai/plan") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"days": [], "summary": None, "tips": None},
            {"days": [{"day": 1, "activities": [{"location": "Gion", "activity": "Evening walk"}]}]},
            {"days": None, "summary": "Two slow days."},
            "Day 1: temples. Day 2: markets.",
        ],
    )
    async def test_generate_plan_accepts_partial_plan_bodies(self, client, backend, body):
        backend.routes[("POST", "/ai/plan")] = (200, {"destination": "Kyoto", "plan": body})

        plan = await client.generate_travel_plan("Kyoto", 2)

        assert plan.destination == "Kyoto"
        if isinstance(body, str):
            assert plan.details is None
            assert plan.plan == body
        else:
            assert plan.details is not None
            assert isinstance(plan.details.tips, list)

    @pytest.mark.asyncio
    async def test_generate_plan_keeps_unknown_plan_shape(self, client, backend):
        body = {"days": "see attachment"}
        backend.routes[("POST", "/ai/plan")] = (200, {"destination": "Kyoto", "plan": body})

        plan = await client.generate_travel_plan("Kyoto", 2)

        assert plan.details is None
        assert plan.plan == body

    @pytest.mark.asyncio
    async def test_generate_plan_rejects_empty_plan(self, client, backend):
        backend.routes[("POST", "/ai/plan")] = (200, {"destination": "Kyoto", "plan": {}})

        with pytest.raises(InvalidResponseError):
            await client.generate_travel_plan("Kyoto", 2)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("duration, sent", [("2.0", 2), (3.0, 3), (" 4 ", 4)])
    async def test_generate_plan_accepts_whole_number_durations(
        self, client, backend, duration, sent
    ):
        await client.generate_travel_plan("Kyoto", duration)

        assert backend.bodies["/ai/plan"]["duration"] == sent

    @pytest.mark.asyncio
    @pytest.mark.parametrize("duration", [2.7, "2.5"])
    async def test_generate_plan_rejects_fractional_duration(self, client, backend, duration):
        with pytest.raises(ValueError):
            await client.generate_travel_plan("Kyoto", duration)

        assert backend.tokens_seen("/ai/plan") == []

    @pytest.mark.asyncio
    async def test_suggestions(self, client, backend):
        result = await client.get_travel_suggestions("Lisbon", "Where to eat?")

        assert backend.bodies["/ai/suggestions"] == {
            "destination": "Lisbon",
            "query": "Where to eat?",
        }
        assert result["suggestions"].startswith("Try")
