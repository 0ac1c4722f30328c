"""FastAPI dependencies for the access gate and shared services."""

from __future__ import annotations

from typing import Annotated, Callable

from fastapi import Header, HTTPException, Request, status

from ..auth import authenticate
from ..errors import Forbidden, Unauthenticated
from ..models.domain import Principal
from ..persistence.shipments import ShipmentRepository
from ..services.realtime.hub import BroadcastHub
from ..services.tracking import TrackingService


def _gate(authorization: str | None, roles: tuple[str, ...]) -> Principal:
    try:
        return authenticate(authorization, roles or None)
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    except Forbidden as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc


def require_principal(
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    return _gate(authorization, ())


def require_roles(*roles: str) -> Callable[..., Principal]:
    def dependency(authorization: Annotated[str | None, Header()] = None) -> Principal:
        return _gate(authorization, roles)

    return dependency


def get_repository(request: Request) -> ShipmentRepository:
    return request.app.state.repository


def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


def get_tracking_service(request: Request) -> TrackingService:
    return request.app.state.tracking
