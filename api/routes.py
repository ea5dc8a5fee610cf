"""HTTP routes for snapshot reads, health and email subscriptions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from core.subscribers import InvalidEmailError
from service import StatusService

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


class EmailRequest(BaseModel):
    email: str | None = None


def get_service(request: Request) -> StatusService:
    return request.app.state.service


@router.get("/health")
async def health(service: StatusService = Depends(get_service)):
    return service.health()


@router.get("/incidents")
async def incidents(service: StatusService = Depends(get_service)):
    snapshot = await service.get_snapshot()
    return snapshot.to_dict()


@router.get("/subscriptions/email")
async def subscriber_count(service: StatusService = Depends(get_service)):
    return {"count": service.subscriber_count()}


@router.post("/subscriptions/email", status_code=status.HTTP_201_CREATED)
async def subscribe(body: EmailRequest, service: StatusService = Depends(get_service)):
    try:
        email = await service.subscribe(body.email)
    except InvalidEmailError:
        raise HTTPException(status_code=400, detail="Invalid email address")
    log.info("Subscribed %s", email)
    return {"email": email, "subscribed": True}


@router.delete("/subscriptions/email")
async def unsubscribe(body: EmailRequest, service: StatusService = Depends(get_service)):
    try:
        email = await service.unsubscribe(body.email)
    except InvalidEmailError:
        raise HTTPException(status_code=400, detail="Invalid email address")
    log.info("Unsubscribed %s", email)
    return {"email": email, "subscribed": False}
