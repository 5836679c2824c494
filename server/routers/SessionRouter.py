from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import SessionResponse
from shared.models.user import ProfileUpdateForm, SignInForm, SignupForm

router = APIRouter(prefix="/session", tags=["session"])


def _session_response(request: Request) -> SessionResponse:
    session = request.app.state.session
    return SessionResponse(authenticated=session.is_authenticated, is_admin=session.is_admin, user=session.user)


@router.get("")
async def get_session(request: Request, _: None = Depends(verify_api_key)) -> SessionResponse:
    """Return the signed-in user of this archive session, if any."""
    return _session_response(request)


@router.post("/sign-in")
async def sign_in(request: Request, body: SignInForm, _: None = Depends(verify_api_key)) -> SessionResponse:
    """Sign in with email and password.

    Args:
        request (Request): FastAPI request (provides app.state.session).
        body (SignInForm): JSON body with email and password.
        _ (None): Auth dependency result (unused).

    Returns:
        SessionResponse: The resolved user. The document store has already followed the session change.
    """
    await request.app.state.session.sign_in(body.email, body.password)
    return _session_response(request)


@router.post("/sign-up", status_code=201)
async def sign_up(request: Request, body: SignupForm, _: None = Depends(verify_api_key)) -> SessionResponse:
    """Create an account and its profile. A matching admin key grants the admin role."""
    await request.app.state.session.sign_up(body)
    return _session_response(request)


@router.post("/sign-out")
async def sign_out(request: Request, _: None = Depends(verify_api_key)) -> SessionResponse:
    await request.app.state.session.sign_out()
    return _session_response(request)


@router.patch("/profile")
async def update_profile(request: Request, body: ProfileUpdateForm, _: None = Depends(verify_api_key)) -> SessionResponse:
    await request.app.state.session.update_profile(body)
    return _session_response(request)
