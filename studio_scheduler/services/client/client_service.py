# studio_scheduler/services/client/client_service.py
"""Service for managing studio clients and their preferences"""
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from studio_scheduler.core.exceptions import NotFoundError
from studio_scheduler.models.client import Client, ClientPreferences
from studio_scheduler.schemas.preferences import ClientCreate, ClientPreferencesUpdate, ClientUpdate
from studio_scheduler.services.store.scheduling_store import commit_or_raise, db_errors

logger = logging.getLogger(__name__)


class ClientService:
    """Handles client-related operations"""

    @staticmethod
    def list_clients(db: Session, studio_id: UUID, search: Optional[str] = None) -> List[Client]:
        with db_errors(db, "list clients"):
            query = db.query(Client).filter(Client.studio_id == studio_id)
            if search:
                pattern = f"%{search}%"
                query = query.filter(
                    Client.first_name.ilike(pattern)
                    | Client.last_name.ilike(pattern)
                    | Client.email.ilike(pattern)
                    | Client.phone.ilike(pattern)
                )
            return query.order_by(Client.first_name.asc(), Client.last_name.asc()).all()

    @staticmethod
    def get_client(db: Session, studio_id: UUID, client_id: UUID) -> Client:
        with db_errors(db, "load client"):
            client = db.query(Client).filter(
                Client.id == client_id,
                Client.studio_id == studio_id
            ).first()
        if not client:
            raise NotFoundError("Client", client_id)
        return client

    @staticmethod
    def create_client(db: Session, studio_id: UUID, data: ClientCreate) -> Client:
        payload = data.model_dump(mode="json", exclude={"preferences", "date_of_birth"})
        client = Client(
            studio_id=studio_id,
            date_of_birth=data.date_of_birth,
            preferences=data.preferences.model_dump(mode="json", exclude_none=True),
            **payload
        )
        with db_errors(db, "create client"):
            db.add(client)
        commit_or_raise(db, "create client")
        db.refresh(client)

        logger.info(f"Created client {client.id} for studio {studio_id}")
        return client

    @staticmethod
    def update_client(db: Session, studio_id: UUID, client_id: UUID, data: ClientUpdate) -> Client:
        client = ClientService.get_client(db, studio_id, client_id)

        updates = data.model_dump(exclude_unset=True)
        if "preferences" in updates:
            # Merge so keys this client does not send are kept
            merged = dict(client.preferences or {})
            if data.preferences is not None:
                merged.update(data.preferences.model_dump(mode="json", exclude_unset=True))
            updates["preferences"] = merged

        for field, value in updates.items():
            setattr(client, field, value)

        commit_or_raise(db, "update client")
        db.refresh(client)

        logger.info(f"Updated client {client_id}: {sorted(updates)}")
        return client

    @staticmethod
    def delete_client(db: Session, studio_id: UUID, client_id: UUID) -> None:
        client = ClientService.get_client(db, studio_id, client_id)
        with db_errors(db, "delete client"):
            db.query(ClientPreferences).filter(ClientPreferences.client_id == client.id).delete()
            db.delete(client)
        commit_or_raise(db, "delete client")
        logger.info(f"Deleted client {client_id}")

    @staticmethod
    def get_preferences(db: Session, studio_id: UUID, client_id: UUID) -> Dict[str, Any]:
        """Detailed preferences; an empty default set when none were saved yet"""
        client = ClientService.get_client(db, studio_id, client_id)
        if client.detailed_preferences is None:
            return {
                "id": None,
                "client_id": str(client.id),
                "preferred_team_members": [],
                "preferred_locations": [],
                "preferred_times": {},
                "communication_preferences": {},
                "booking_preferences": {},
                "accessibility_needs": None,
                "allergies": None,
            }
        return client.detailed_preferences.to_dict()

    @staticmethod
    def upsert_preferences(
            db: Session,
            studio_id: UUID,
            client_id: UUID,
            data: ClientPreferencesUpdate
    ) -> ClientPreferences:
        client = ClientService.get_client(db, studio_id, client_id)

        preferences = client.detailed_preferences
        if preferences is None:
            preferences = ClientPreferences(client_id=client.id)
            with db_errors(db, "create client preferences"):
                db.add(preferences)

        for field, value in data.model_dump(mode="json", exclude_unset=True).items():
            setattr(preferences, field, value)

        commit_or_raise(db, "save client preferences")
        db.refresh(preferences)
        return preferences
