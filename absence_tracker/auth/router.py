"""Auth router — sign-in happens at the auth provider; this only echoes
the resolved session context so the client knows its role and profile."""

from fastapi import APIRouter, Depends

from absence_tracker.auth.dependencies import get_session_context
from absence_tracker.auth.schemas import SessionContext

router = APIRouter()


@router.get("/me")
async def me(ctx: SessionContext = Depends(get_session_context)):
    """Return the caller's user id, role, employee and company."""
    return {**ctx.model_dump(mode="json"), "is_admin": ctx.is_admin}
