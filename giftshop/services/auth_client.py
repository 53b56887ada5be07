import logging
from typing import Any, Dict, Optional

import httpx

from giftshop.core.errors import AuthProviderError

logger = logging.getLogger(__name__)

class AuthClient:
    """Thin client for the identity provider's REST API (GoTrue-style)."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 5.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, path: str, *, params: Optional[dict] = None,
                 json: Optional[dict] = None, token: Optional[str] = None) -> Dict[str, Any]:
        headers = {"apikey": self.api_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.request(method, f"{self.base_url}{path}", params=params, json=json, headers=headers)
        except httpx.RequestError as e:
            logger.error("Identity provider unavailable: %s", e)
            raise AuthProviderError("Identity provider unavailable", status_code=503) from e
        if resp.status_code >= 400:
            raise AuthProviderError(_error_message(resp), status_code=resp.status_code)
        return resp.json() if resp.content else {}

    def sign_in_with_otp(self, email: str, redirect_to: str) -> None:
        self._request("POST", "/otp", params={"redirect_to": redirect_to},
                      json={"email": email, "create_user": True})

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/token", params={"grant_type": "password"},
                             json={"email": email, "password": password})

    def exchange_code_for_session(self, code: str) -> Dict[str, Any]:
        return self._request("POST", "/token", params={"grant_type": "pkce"}, json={"auth_code": code})

    def update_user(self, access_token: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", "/user", json=patch, token=access_token)

def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or "Identity provider error"
    if not isinstance(body, dict):
        return "Identity provider error"
    return body.get("error_description") or body.get("msg") or body.get("message") or "Identity provider error"
