"""
Tests for the composable action wrappers
"""

from typing import Optional

import pytest
from fastapi import Request, Response
from pydantic import BaseModel, Field

from saas_starter.core.actions import ActionContext, authenticated, team_scoped, validated_action
from saas_starter.core.auth import create_session_token
from saas_starter.models import Team, TeamMember, TeamRole


class GreetingForm(BaseModel):
    name: str = Field(..., min_length=2)
    times: int = 1


def make_request(token: Optional[str] = None, team_id: Optional[str] = None) -> Request:
    headers = [(b"x-forwarded-for", b"203.0.113.9, 10.0.0.1")]
    if token:
        headers.append((b"cookie", f"session={token}".encode()))
    if team_id:
        headers.append((b"x-team-id", team_id.encode()))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "query_string": b"",
        "headers": headers,
        "client": ("127.0.0.1", 5000),
    }
    return Request(scope)


def make_ctx(db, token=None, team_id=None) -> ActionContext:
    return ActionContext(request=make_request(token, team_id), response=Response(), session=db)


class TestValidatedAction:
    @pytest.mark.asyncio
    async def test_passes_parsed_data(self, db):
        @validated_action(GreetingForm)
        async def greet(data, ctx):
            return {"greeting": f"hi {data.name}", "times": data.times}

        result = await greet({"name": "Ada", "times": "3"}, make_ctx(db))

        assert result == {"greeting": "hi Ada", "times": 3}

    @pytest.mark.asyncio
    async def test_invalid_input_never_reaches_handler(self, db):
        calls = []

        @validated_action(GreetingForm)
        async def greet(data, ctx):
            calls.append(data)
            return {}

        result = await greet({"name": "A"}, make_ctx(db))

        assert calls == []
        assert result["code"] == "validation_error"
        assert result["error"].startswith("name:")
        assert "name" in result["fields"]

    @pytest.mark.asyncio
    async def test_missing_input_is_validated(self, db):
        @validated_action(GreetingForm)
        async def greet(data, ctx):
            return {}

        result = await greet(None, make_ctx(db))

        assert result["code"] == "validation_error"


class TestAuthenticated:
    @pytest.mark.asyncio
    async def test_anonymous_is_rejected(self, db):
        @authenticated
        async def whoami(data, ctx):
            return {"id": str(ctx.user.id)}

        result = await whoami(None, make_ctx(db))

        assert result == {"error": "User is not authenticated", "code": "unauthenticated"}

    @pytest.mark.asyncio
    async def test_injects_user(self, db, owner):
        @authenticated
        async def whoami(data, ctx):
            return {"id": ctx.user.id, "ip": ctx.ip_address}

        result = await whoami(None, make_ctx(db, create_session_token(owner.id)))

        assert result == {"id": owner.id, "ip": "203.0.113.9"}

    @pytest.mark.asyncio
    async def test_deleted_user_is_rejected(self, db, owner):
        owner.soft_delete()
        db.add(owner)
        db.commit()

        @authenticated
        async def whoami(data, ctx):
            return {}

        result = await whoami(None, make_ctx(db, create_session_token(owner.id)))

        assert result["code"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_garbage_cookie_is_rejected(self, db):
        @authenticated
        async def whoami(data, ctx):
            return {}

        result = await whoami(None, make_ctx(db, "not.a.token"))

        assert result["code"] == "unauthenticated"


class TestTeamScoped:
    @pytest.mark.asyncio
    async def test_user_without_team(self, db, make_user):
        user = make_user("loner@acme.io")

        @team_scoped
        async def team_name(data, ctx):
            return {"team": ctx.team.name}

        result = await team_name(None, make_ctx(db, create_session_token(user.id)))

        assert result == {"error": "User is not part of a team", "code": "no_team"}

    @pytest.mark.asyncio
    async def test_injects_team_and_membership(self, db, owner, team):
        @team_scoped
        async def team_name(data, ctx):
            return {"team": ctx.team.name, "role": ctx.membership.role}

        result = await team_name(None, make_ctx(db, create_session_token(owner.id)))

        assert result == {"team": "Acme", "role": TeamRole.OWNER}

    @pytest.mark.asyncio
    async def test_anonymous_checked_before_team(self, db):
        @team_scoped
        async def team_name(data, ctx):
            return {}

        result = await team_name(None, make_ctx(db))

        assert result["code"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_team_header_selects_membership(self, db, owner):
        second = Team(name="Second")
        db.add(second)
        db.add(TeamMember(user_id=owner.id, team_id=second.id, role=TeamRole.MEMBER))
        db.commit()

        @team_scoped
        async def team_name(data, ctx):
            return {"team": ctx.team.name}

        result = await team_name(
            None, make_ctx(db, create_session_token(owner.id), team_id=str(second.id))
        )

        assert result == {"team": "Second"}

    @pytest.mark.asyncio
    async def test_foreign_team_header_forbidden(self, db, owner):
        other = Team(name="Other")
        db.add(other)
        db.commit()

        @team_scoped
        async def team_name(data, ctx):
            return {"team": ctx.team.name}

        result = await team_name(
            None, make_ctx(db, create_session_token(owner.id), team_id=str(other.id))
        )

        assert result["code"] == "forbidden"

    @pytest.mark.asyncio
    async def test_composes_with_validation(self, db, owner):
        @validated_action(GreetingForm)
        @team_scoped
        async def greet(data, ctx):
            return {"greeting": f"{ctx.team.name} greets {data.name}"}

        ok = await greet({"name": "Ada"}, make_ctx(db, create_session_token(owner.id)))
        invalid = await greet({}, make_ctx(db, create_session_token(owner.id)))
        anonymous = await greet({"name": "Ada"}, make_ctx(db))

        assert ok == {"greeting": "Acme greets Ada"}
        assert invalid["code"] == "validation_error"
        assert anonymous["code"] == "unauthenticated"
