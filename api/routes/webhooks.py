"""
api/routes/webhooks.py -- Polka payment webhooks.

Routes:
  POST /api/polka/webhooks  -- Authorization: ApiKey <POLKA_KEY>

Only the "user.upgraded" event does anything: it sets is_chirpy_red on the
user. Every other event is acknowledged with 204 so Polka stops retrying it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import WebhookRequest
from auth.dependencies import require_api_key
from auth.store import UserStore

logger = logging.getLogger("chirpy.api")

router = APIRouter()

UPGRADE_EVENT = "user.upgraded"


@router.post("/polka/webhooks", status_code=204, dependencies=[Depends(require_api_key)])
def polka_webhook(request: Request, body: WebhookRequest) -> Response:
    if body.event != UPGRADE_EVENT:
        return Response(status_code=204)

    users: UserStore = request.app.state.auth.users
    if not users.upgrade_to_chirpy_red(body.data.user_id):
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    logger.info("user %s upgraded to Chirpy Red", body.data.user_id)
    return Response(status_code=204)
