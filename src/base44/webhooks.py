"""Webhook receivers for payment notifications (requires the ``webhooks`` extra).

Two routes are served by the app from :func:`create_webhook_app`:

* ``/api/morning-webhook`` -- acknowledges a payment notification and logs
  the payer's email. ``GET`` is a liveness check.
* ``/api/subscription-webhook`` -- marks the paying user as subscribed:
  finds the user record by ``payer.email`` and sets the subscription flag
  through the entity API.

Both answer ``405`` with an ``Allow`` header to any other method.

Run it with any ASGI server::

    uvicorn base44.webhooks:create_webhook_app --factory
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse

from base44.config import resolve_client_config
from base44.exceptions import Base44Error
from base44.factory import Base44Client, create_client

logger = logging.getLogger(__name__)

_ALLOWED = "GET, POST"
_OTHER_METHODS = ["PUT", "PATCH", "DELETE", "OPTIONS"]


async def _read_payer_email(request: Request) -> Optional[str]:
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    payer = body.get("payer")
    if not isinstance(payer, dict):
        return None
    email = payer.get("email")
    return email if isinstance(email, str) and email else None


def _method_not_allowed(request: Request) -> PlainTextResponse:
    return PlainTextResponse(
        f"Method {request.method} Not Allowed",
        status_code=405,
        headers={"Allow": _ALLOWED},
    )


def build_router(
    get_client: Any,
    *,
    user_entity: str = "User",
    subscription_field: str = "is_subscribed",
) -> APIRouter:
    """Build the webhook routes.

    Args:
        get_client: Zero-argument callable returning the
            :class:`~base44.factory.Base44Client` to use.
        user_entity: Entity holding user records.
        subscription_field: Boolean field set to ``True`` on payment.
    """
    router = APIRouter(prefix="/api", tags=["webhooks"])

    @router.get("/morning-webhook", response_class=PlainTextResponse)
    async def morning_webhook_check() -> str:
        return "GET is working"

    @router.post("/morning-webhook", response_class=PlainTextResponse)
    async def morning_webhook(request: Request) -> str:
        email = await _read_payer_email(request) or "unknown"
        logger.info("Received webhook for email: %s", email)
        return f"Webhook received for {email}"

    @router.get("/subscription-webhook", response_class=PlainTextResponse)
    async def subscription_webhook_check() -> str:
        return "GET is working"

    @router.post("/subscription-webhook")
    async def subscription_webhook(request: Request) -> dict[str, Any]:
        email = await _read_payer_email(request)
        if email is None:
            raise HTTPException(status_code=400, detail="payer.email is required")

        client: Base44Client = get_client()
        users = client.entities.handle(user_entity)
        try:
            matches = await users.filter({"email": email}, limit=1)
            if not matches:
                raise HTTPException(status_code=404, detail=f"No {user_entity} with email {email}")
            record = matches[0]
            user_id = record.get("id") if isinstance(record, dict) else None
            if not user_id:
                logger.error("%s lookup for %s returned a record without an id", user_entity, email)
                raise HTTPException(
                    status_code=502, detail=f"Backend returned a {user_entity} record without an id"
                )
            await users.update(user_id, {subscription_field: True})
        except Base44Error as exc:
            logger.error("Subscription update for %s failed: %s", email, exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc

        logger.info("Marked %s %s as subscribed", user_entity, user_id)
        return {"status": "ok", "email": email, "user_id": user_id}

    for path in ("/morning-webhook", "/subscription-webhook"):
        router.add_api_route(
            path,
            _method_not_allowed,
            methods=_OTHER_METHODS,
            include_in_schema=False,
        )
    return router


def create_webhook_app(
    client: Optional[Base44Client] = None,
    *,
    user_entity: str = "User",
    subscription_field: str = "is_subscribed",
) -> FastAPI:
    """Create the FastAPI app serving the webhook routes.

    Args:
        client: Client used for entity updates. When ``None`` one is
            created from ``BASE44_*`` environment variables / ``base44.json``
            on first use and closed on shutdown.
        user_entity: Entity holding user records.
        subscription_field: Boolean field set to ``True`` on payment.
    """
    owned: list[Base44Client] = []

    def get_client() -> Base44Client:
        if client is not None:
            return client
        if not owned:
            owned.append(create_client(resolve_client_config()))
        return owned[0]

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        for owned_client in owned:
            await owned_client.aclose()
        owned.clear()

    app = FastAPI(title="base44 webhooks", lifespan=lifespan)
    app.include_router(
        build_router(get_client, user_entity=user_entity, subscription_field=subscription_field)
    )
    return app
