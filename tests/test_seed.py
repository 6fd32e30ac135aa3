"""
Tests for the development seed script
"""

from sqlmodel import select

from saas_starter.core.auth import verify_password
from saas_starter.models import Team, TeamMember, TeamRole, User
from saas_starter.scripts.seed import SEED_EMAIL, SEED_PASSWORD, seed_database


def test_seed_creates_owner_and_team(db):
    result = seed_database(db)

    assert result["created"] is True
    user = db.exec(select(User).where(User.email == SEED_EMAIL)).one()
    assert verify_password(SEED_PASSWORD, user.password_hash)
    membership = db.exec(select(TeamMember).where(TeamMember.user_id == user.id)).one()
    assert membership.role == TeamRole.OWNER
    assert db.get(Team, membership.team_id).name == "Test Team"


def test_seed_is_repeatable(db):
    first = seed_database(db)
    second = seed_database(db)

    assert second == {"created": False, "user_id": first["user_id"]}
    assert len(db.exec(select(Team)).all()) == 1
