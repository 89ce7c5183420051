"""
FastAPI routes for the one-time interactive Fitbit setup.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from sleepbot.core.errors import SleepBotError
from sleepbot.dependencies import (
    get_client_credentials,
    get_fitbit_oauth_client,
    get_fitbit_token_service,
)
from sleepbot.services.token_store import TokenStoreError

router = APIRouter()
logger = logging.getLogger(__name__)

_SETUP_COMPLETE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>sleepbot setup</title>
</head>
<body>
    <h1>setup complete ^-^</h1>
    <p>The Fitbit token has been saved. You can close this tab and start the bot.</p>
</body>
</html>
"""


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/authorize", status_code=HTTPStatus.TEMPORARY_REDIRECT)
async def start_fitbit_oauth_flow(
    oauth_client: Annotated[Any, Depends(get_fitbit_oauth_client)],
    credentials: Annotated[Any, Depends(get_client_credentials)],
) -> RedirectResponse:
    """Redirect the browser to the Fitbit consent screen."""
    authorization_url = oauth_client.build_authorization_url(credentials)
    return RedirectResponse(
        url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT
    )


@router.get("/callback", status_code=HTTPStatus.OK, response_class=HTMLResponse)
async def handle_fitbit_callback(
    token_service: Annotated[Any, Depends(get_fitbit_token_service)],
    credentials: Annotated[Any, Depends(get_client_credentials)],
    code: str | None = Query(
        default=None, description="Authorization code returned by Fitbit."
    ),
    error: str | None = Query(
        default=None, description="Error reported by Fitbit when consent was denied."
    ),
) -> HTMLResponse:
    """Exchange the authorization code and persist the first token record."""
    if error:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"Fitbit authorization failed: {error}",
        )
    if not code:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Missing code")

    try:
        record = await token_service.exchange_authorization_code(code, credentials)
    except TokenStoreError as exc:
        logger.error("Token exchange succeeded but saving failed: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to save token.",
        ) from exc
    except SleepBotError as exc:
        logger.error("Failed to exchange code for token: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail="Failed to exchange code for token.",
        ) from exc

    logger.info("Setup complete for Fitbit user %s", record.user_id)
    return HTMLResponse(content=_SETUP_COMPLETE_HTML, status_code=HTTPStatus.OK)
