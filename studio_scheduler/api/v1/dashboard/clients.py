# ============================================================================
# FILE: studio_scheduler/api/v1/dashboard/clients.py
# Client records and booking preferences
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from studio_scheduler.config.database import get_db
from studio_scheduler.api.dependencies import Principal, get_current_principal
from studio_scheduler.schemas.preferences import ClientCreate, ClientPreferencesUpdate, ClientUpdate
from studio_scheduler.services.client.client_service import ClientService

router = APIRouter(prefix="/clients", tags=["dashboard-clients"])


@router.get("")
async def list_clients(
        search: Optional[str] = Query(None, description="Match on name, email or phone"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Clients of your studio ordered by first name."""
    clients = ClientService.list_clients(db, principal.studio_id, search=search)
    return {
        "total_clients": len(clients),
        "clients": [client.to_dict() for client in clients]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_client(
        data: ClientCreate,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    client = ClientService.create_client(db, principal.studio_id, data)
    return client.to_dict()


@router.get("/{client_id}")
async def get_client(
        client_id: UUID = Path(..., description="The client ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    return ClientService.get_client(db, principal.studio_id, client_id).to_dict()


@router.patch("/{client_id}")
async def update_client(
        data: ClientUpdate,
        client_id: UUID = Path(..., description="The client ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Only sent fields are changed; preference keys are merged."""
    return ClientService.update_client(db, principal.studio_id, client_id, data).to_dict()


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
        client_id: UUID = Path(..., description="The client ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    ClientService.delete_client(db, principal.studio_id, client_id)


@router.get("/{client_id}/preferences")
async def get_client_preferences(
        client_id: UUID = Path(..., description="The client ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    return ClientService.get_preferences(db, principal.studio_id, client_id)


@router.put("/{client_id}/preferences")
async def update_client_preferences(
        data: ClientPreferencesUpdate,
        client_id: UUID = Path(..., description="The client ID"),
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db)
):
    """Create or update preferred team members, times and communication settings."""
    return ClientService.upsert_preferences(db, principal.studio_id, client_id, data).to_dict()
