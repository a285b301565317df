"""
api/routes/auth.py -- Session endpoints.

Routes:
  POST /api/login    -- email/password login; returns access + refresh tokens
  POST /api/refresh  -- Authorization: Bearer <refresh token> -> new access token
  POST /api/revoke   -- Authorization: Bearer <refresh token> -> 204

Security:
  Login returns the same 401 body for an unknown email, a wrong password and a
  corrupt stored hash. AuthService.login() also equalizes timing; never inline
  get_by_email() + verify_password() here.
  Cache-Control: no-store on every response that carries a token.
  Revoke answers 204 whether or not the token existed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, RefreshResponse, UserResponse
from auth.dependencies import get_auth_service
from auth.errors import Unauthorized
from auth.service import AuthService

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Authenticate with email and password."""
    try:
        result = auth.login(body.email, body.password)
    except Unauthorized:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="bad_credentials", message="Incorrect email or password.")
            ).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    profile = UserResponse.from_user(result.user)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            **profile.model_dump(),
            token=result.access_token,
            refresh_token=result.refresh_token,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: Request, response: Response, auth: AuthService = Depends(get_auth_service)) -> RefreshResponse:
    """Exchange a bearer refresh token for a new 1-hour access token.

    Unauthorized propagates to the app-level handler, which answers 401.
    """
    token = auth.refresh(request.headers)
    response.headers["Cache-Control"] = "no-store"
    return RefreshResponse(token=token)


@router.post("/revoke", status_code=204)
def revoke(request: Request, auth: AuthService = Depends(get_auth_service)) -> Response:
    """Revoke a bearer refresh token. Unknown tokens still get 204."""
    auth.revoke(request.headers)
    return Response(status_code=204)
