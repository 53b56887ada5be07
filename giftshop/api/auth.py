from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from typing import Optional
from urllib.parse import quote
import logging

from giftshop.api.deps import get_auth_client
from giftshop.core.config import Settings, get_settings
from giftshop.core.errors import AuthProviderError
from giftshop.schemas import MagicLinkPayload, PasswordLoginPayload
from giftshop.services.auth_client import AuthClient

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_ERROR = "There was an error logging in. Please try again."

def _safe_next(next_path: Optional[str]) -> str:
    # only same-site paths, never an absolute URL
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return "/dashboard"
    return next_path

def _set_session(resp, session: dict, settings: Settings):
    token = session.get("access_token")
    if not token:
        raise AuthProviderError("Identity provider returned no session", status_code=502)
    resp.set_cookie(settings.SESSION_COOKIE, token, httponly=True, samesite="lax",
                    secure=settings.SESSION_COOKIE_SECURE, max_age=session.get("expires_in"))
    return resp

@router.get("/login")
def login_page(next: Optional[str] = None, error: Optional[str] = None):
    return {"next": _safe_next(next), "error": error}

@router.post("/login/magic-link")
def magic_link(payload: MagicLinkPayload, request: Request, auth: AuthClient = Depends(get_auth_client)):
    callback = str(request.url_for("auth_callback")) + f"?next={quote(_safe_next(payload.next), safe='/')}"
    try:
        auth.sign_in_with_otp(str(payload.email), callback)
    except AuthProviderError as e:
        logger.error("Magic link request failed: %s", e)
        raise HTTPException(status_code=502 if e.status_code >= 500 else 400, detail=str(e))
    return {"status": "sent", "detail": "Check your email for the login link."}

@router.post("/login/password")
def password_login(payload: PasswordLoginPayload, auth: AuthClient = Depends(get_auth_client),
                   settings: Settings = Depends(get_settings)):
    try:
        session = auth.sign_in_with_password(str(payload.email), payload.password)
        resp = JSONResponse({"status": "ok", "redirect_to": _safe_next(payload.next)})
        return _set_session(resp, session, settings)
    except AuthProviderError as e:
        logger.info("Password login failed for %s: %s", payload.email, e)
        raise HTTPException(status_code=401 if e.status_code < 500 else 502, detail="Invalid login credentials")

@router.get("/auth/callback", name="auth_callback")
def auth_callback(code: Optional[str] = None, next: Optional[str] = None,
                  auth: AuthClient = Depends(get_auth_client), settings: Settings = Depends(get_settings)):
    resp = RedirectResponse(_safe_next(next), status_code=303)
    if not code:
        return resp
    try:
        return _set_session(resp, auth.exchange_code_for_session(code), settings)
    except AuthProviderError as e:
        logger.error("Error exchanging code for session: %s", e)
        return RedirectResponse(f"/login?error={quote(LOGIN_ERROR)}", status_code=303)

@router.post("/logout")
def logout(settings: Settings = Depends(get_settings)):
    resp = RedirectResponse("/", status_code=303)
    resp.delete_cookie(settings.SESSION_COOKIE)
    return resp
