from saas_starter.models.user import User
from saas_starter.models.team import Team
from saas_starter.models.team_member import TeamMember, TeamRole
from saas_starter.models.activity_log import ActivityLog, ActivityType
from saas_starter.models.invitation import Invitation, InvitationStatus
