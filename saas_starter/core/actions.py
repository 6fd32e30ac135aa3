"""
Composable wrappers for form-style actions

An action is ``async def handler(data, ctx)``. The wrappers below validate the
raw input, require a session and resolve the team, each one delegating to the
next::

    @validated_action(UpdatePasswordForm)
    @authenticated
    async def update_password(data, ctx): ...

Any ``AppError`` raised underneath is turned into an ``{"error", "code"}``
result at the wrapper boundary.
"""

from dataclasses import dataclass
from functools import wraps
import json
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TYPE_CHECKING

import pydantic
from fastapi import Request, Response
from sqlmodel import Session
import structlog

from saas_starter.core.dependencies import client_ip, resolve_membership, resolve_user
from saas_starter.core.errors import AppError, Unauthenticated, ValidationError, status_for_result
from saas_starter.models import Team, TeamMember, User

if TYPE_CHECKING:
    from saas_starter.services.stripe_service import StripeService

logger = structlog.get_logger(__name__)

ActionResult = Dict[str, Any]
Handler = Callable[..., Awaitable[ActionResult]]


@dataclass
class ActionContext:
    """Per-request state handed to every action"""
    request: Request
    response: Response
    session: Session
    user: Optional[User] = None
    team: Optional[Team] = None
    membership: Optional[TeamMember] = None
    stripe: Optional["StripeService"] = None

    @property
    def ip_address(self) -> Optional[str]:
        return client_ip(self.request)


def _guarded(handler: Handler) -> Handler:
    @wraps(handler)
    async def wrapper(data: Any, ctx: ActionContext) -> ActionResult:
        try:
            return await handler(data, ctx)
        except AppError as e:
            ctx.session.rollback()
            logger.info(f"Action {handler.__name__} failed: {e.code}")
            return e.to_dict()
    return wrapper


def _validation_error(exc: pydantic.ValidationError) -> ValidationError:
    fields = {}
    for err in exc.errors():
        name = ".".join(str(part) for part in err["loc"]) or "__root__"
        fields.setdefault(name, err["msg"])
    first = next(iter(fields.items()))
    return ValidationError(f"{first[0]}: {first[1]}", fields=fields)


def validated_action(schema: Type[pydantic.BaseModel]) -> Callable[[Handler], Handler]:
    """Parse the raw input dict against ``schema`` before calling the handler"""
    def decorator(handler: Handler) -> Handler:
        @_guarded
        @wraps(handler)
        async def wrapper(data: Any, ctx: ActionContext) -> ActionResult:
            if data is not None and not isinstance(data, dict):
                raise ValidationError(
                    "Request body must be a JSON object",
                    fields={"__root__": "Request body must be a JSON object"},
                )
            try:
                parsed = schema.model_validate(data or {})
            except pydantic.ValidationError as e:
                raise _validation_error(e)
            return await handler(parsed, ctx)
        return wrapper
    return decorator


def authenticated(handler: Handler) -> Handler:
    """Require a valid session and inject ``ctx.user``"""
    @_guarded
    @wraps(handler)
    async def wrapper(data: Any, ctx: ActionContext) -> ActionResult:
        user = resolve_user(ctx.request, ctx.session)
        if user is None:
            raise Unauthenticated()
        ctx.user = user
        return await handler(data, ctx)
    return wrapper


def team_scoped(handler: Handler) -> Handler:
    """Require a session and a team membership, injecting ``ctx.team``"""
    @wraps(handler)
    async def with_team(data: Any, ctx: ActionContext) -> ActionResult:
        membership = resolve_membership(ctx.request, ctx.session, ctx.user)
        ctx.membership = membership
        ctx.team = ctx.session.get(Team, membership.team_id)
        return await handler(data, ctx)
    return authenticated(with_team)


async def read_payload(request: Request) -> Any:
    """
    Raw JSON body for an action

    Bodies that are not JSON are passed through as text for ``validated_action`` to reject.
    """
    body = await request.body()
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


async def run_action(
    action: Handler,
    data: Any,
    request: Request,
    response: Response,
    session: Session,
    stripe: Optional["StripeService"] = None,
) -> ActionResult:
    """Invoke an action from a route and map its result code onto the HTTP status"""
    ctx = ActionContext(request=request, response=response, session=session, stripe=stripe)
    result = await action(data, ctx)
    response.status_code = status_for_result(result)
    return result
