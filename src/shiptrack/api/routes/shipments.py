"""Authenticated shipment CRUD endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...errors import ShipmentNotFound
from ...models.domain import Principal, Shipment
from ...persistence.shipments import ShipmentRepository
from ...schemas.shipments import ShipmentCreate, ShipmentListResponse, ShipmentModel, ShipmentUpdate
from ..dependencies import get_repository, require_principal

router = APIRouter(prefix="/shipments", tags=["shipments"])

Repository = Annotated[ShipmentRepository, Depends(get_repository)]
CurrentPrincipal = Annotated[Principal, Depends(require_principal)]


def _not_found(exc: ShipmentNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=ShipmentListResponse)
def list_shipments(
    repository: Repository,
    principal: CurrentPrincipal,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> ShipmentListResponse:
    items = repository.list(limit=limit, offset=offset)
    return ShipmentListResponse(
        items=[ShipmentModel.from_domain(item) for item in items], limit=limit, offset=offset
    )


@router.post("", response_model=ShipmentModel, status_code=status.HTTP_201_CREATED)
def create_shipment(
    payload: ShipmentCreate, repository: Repository, principal: CurrentPrincipal
) -> ShipmentModel:
    data = payload.model_dump()
    data["shipment_id"] = data["shipment_id"] or ""
    data["status"] = payload.status.value
    try:
        created = repository.create(Shipment(**data))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return ShipmentModel.from_domain(created)


@router.get("/{shipment_id}", response_model=ShipmentModel)
def get_shipment(shipment_id: str, repository: Repository, principal: CurrentPrincipal) -> ShipmentModel:
    shipment = repository.find_by_id(shipment_id)
    if shipment is None:
        raise _not_found(ShipmentNotFound(shipment_id))
    return ShipmentModel.from_domain(shipment)


@router.patch("/{shipment_id}", response_model=ShipmentModel)
def update_shipment(
    shipment_id: str,
    payload: ShipmentUpdate,
    repository: Repository,
    principal: CurrentPrincipal,
) -> ShipmentModel:
    changes = payload.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] is not None:
        changes["status"] = changes["status"].value
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        updated = repository.update(shipment_id, changes)
    except ShipmentNotFound as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ShipmentModel.from_domain(updated)


@router.delete("/{shipment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shipment(shipment_id: str, repository: Repository, principal: CurrentPrincipal) -> Response:
    try:
        repository.delete(shipment_id)
    except ShipmentNotFound as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
