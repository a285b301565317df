"""
api/routes/chirps.py -- Chirp endpoints.

Routes:
  POST   /api/chirps            -- create (requires access token)
  GET    /api/chirps            -- list; ?author_id=<uuid>&sort=asc|desc
  GET    /api/chirps/{chirp_id} -- fetch one
  DELETE /api/chirps/{chirp_id} -- delete own chirp (requires access token)

The author of a new chirp is always the access token's subject. Request bodies
cannot choose it.
"""

from __future__ import annotations

import logging
import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import ChirpCreate, ChirpResponse
from auth.dependencies import get_current_user_id
from chirps.models import Chirp
from chirps.store import ChirpStore
from chirps.validation import ChirpTooLong, validate_body

logger = logging.getLogger("chirpy.chirps")

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "Chirp not found."},
    )


@router.post("/chirps", response_model=ChirpResponse, status_code=201)
def create_chirp(
    request: Request,
    body: ChirpCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ChirpResponse:
    """Post a chirp as the authenticated user. Profanity is masked before storage."""
    try:
        cleaned = validate_body(body.body)
    except ChirpTooLong as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "chirp_too_long", "message": str(exc)},
        ) from exc
    store: ChirpStore = request.app.state.chirps
    chirp = store.create_chirp(Chirp(body=cleaned, user_id=user_id))
    return ChirpResponse.from_chirp(chirp)


@router.get("/chirps", response_model=list[ChirpResponse])
def list_chirps(
    request: Request,
    author_id: Optional[uuid.UUID] = None,
    sort: Literal["asc", "desc"] = "asc",
) -> list[ChirpResponse]:
    """List chirps oldest first (or newest first with sort=desc)."""
    store: ChirpStore = request.app.state.chirps
    chirps = store.list_chirps(author_id=author_id, descending=sort == "desc")
    return [ChirpResponse.from_chirp(c) for c in chirps]


@router.get("/chirps/{chirp_id}", response_model=ChirpResponse)
def get_chirp(request: Request, chirp_id: uuid.UUID) -> ChirpResponse:
    store: ChirpStore = request.app.state.chirps
    chirp = store.get_chirp(chirp_id)
    if chirp is None:
        raise _not_found()
    return ChirpResponse.from_chirp(chirp)


@router.delete("/chirps/{chirp_id}", status_code=204)
def delete_chirp(
    request: Request,
    chirp_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> Response:
    """Delete a chirp. Only its author may do this (403 otherwise)."""
    store: ChirpStore = request.app.state.chirps
    chirp = store.get_chirp(chirp_id)
    if chirp is None:
        raise _not_found()
    if chirp.user_id != user_id:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "You can only delete your own chirps."},
        )
    store.delete_chirp(chirp_id)
    logger.info("chirp %s deleted by user %s", chirp_id, user_id)
    return Response(status_code=204)
