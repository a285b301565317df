"""
api/routes/admin.py -- Operator endpoints.

Routes:
  GET  /admin/metrics  -- HTML page with the /app hit count
  POST /admin/reset    -- wipe users, sessions and chirps (PLATFORM=dev only)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

logger = logging.getLogger("chirpy.api")

router = APIRouter()

_METRICS_TEMPLATE = """<html>
  <body>
    <h1>Welcome, Chirpy Admin</h1>
    <p>Chirpy has been visited {hits} times!</p>
  </body>
</html>
"""


@router.get("/metrics", response_class=HTMLResponse)
async def metrics(request: Request) -> HTMLResponse:
    return HTMLResponse(_METRICS_TEMPLATE.format(hits=request.app.state.fileserver_hits))


@router.post("/reset", response_class=PlainTextResponse)
def reset(request: Request) -> PlainTextResponse:
    """Return the server to an empty state. Refused outside the dev platform.

    Chirps and refresh tokens are deleted before users so no row is left
    pointing at a missing account.
    """
    state = request.app.state
    if state.settings.platform != "dev":
        return PlainTextResponse("Reset is only allowed in dev environment.", status_code=403)

    chirps = state.chirps.delete_all()
    tokens = state.auth.refresh_tokens.delete_all()
    users = state.auth.users.delete_all()
    state.fileserver_hits = 0
    logger.warning("reset: removed %d users, %d refresh tokens, %d chirps", users, tokens, chirps)
    return PlainTextResponse("Reset to initial state.")
