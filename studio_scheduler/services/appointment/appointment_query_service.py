# ============================================================================
# studio_scheduler/services/appointment/appointment_query_service.py
# Read-only appointment queries - no FastAPI dependencies, fully testable
# ============================================================================
from collections import Counter
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from studio_scheduler.core.exceptions import NotFoundError
from studio_scheduler.models.appointment import Appointment, AppointmentHistory, AppointmentStatus
from studio_scheduler.services.store.scheduling_store import db_errors
from studio_scheduler.utils.time_utils import format_time


class AppointmentQueryService:
    """Service layer for reading appointments and their history."""

    @staticmethod
    def list_appointments(
            db: Session,
            studio_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            status: Optional[str] = None,
            team_member_id: Optional[UUID] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Get paginated list of appointments with filters."""
        with db_errors(db, "list appointments"):
            query = db.query(Appointment).options(
                joinedload(Appointment.client),
                joinedload(Appointment.service),
                joinedload(Appointment.team_member),
                joinedload(Appointment.location),
            ).filter(Appointment.studio_id == studio_id)

            if start_date:
                query = query.filter(Appointment.appointment_date >= start_date)
            if end_date:
                query = query.filter(Appointment.appointment_date <= end_date)
            if status:
                query = query.filter(Appointment.status == status)
            if team_member_id:
                query = query.filter(Appointment.team_member_id == team_member_id)

            total = query.count()
            appointments = query.order_by(
                Appointment.appointment_date.asc(),
                Appointment.start_time.asc()
            ).offset(skip).limit(limit).all()

        return {
            "studio_id": str(studio_id),
            "total_appointments": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": status,
                "team_member_id": str(team_member_id) if team_member_id else None
            },
            "appointments": [
                AppointmentQueryService.serialize_appointment(appt) for appt in appointments
            ]
        }

    @staticmethod
    def get_appointment_by_id(
            db: Session,
            studio_id: UUID,
            appointment_id: UUID
    ) -> Dict[str, Any]:
        """Get a single appointment by ID."""
        with db_errors(db, "load appointment"):
            appointment = db.query(Appointment).filter(
                Appointment.id == appointment_id,
                Appointment.studio_id == studio_id
            ).first()

        if not appointment:
            raise NotFoundError("Appointment", appointment_id)

        return AppointmentQueryService.serialize_appointment(appointment, detailed=True)

    @staticmethod
    def get_history(
            db: Session,
            studio_id: UUID,
            appointment_id: UUID
    ) -> List[Dict[str, Any]]:
        """Audit trail of an appointment, oldest first."""
        with db_errors(db, "load appointment history"):
            exists = db.query(Appointment.id).filter(
                Appointment.id == appointment_id,
                Appointment.studio_id == studio_id
            ).first()
            if not exists:
                raise NotFoundError("Appointment", appointment_id)

            entries = db.query(AppointmentHistory).filter(
                AppointmentHistory.appointment_id == appointment_id
            ).order_by(AppointmentHistory.created_at.asc(), AppointmentHistory.id.asc()).all()

        return [entry.to_dict() for entry in entries]

    @staticmethod
    def get_scheduling_metrics(
            db: Session,
            studio_id: UUID,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """Calculate appointment statistics for a studio."""
        with db_errors(db, "load scheduling metrics"):
            query = db.query(Appointment).options(
                joinedload(Appointment.service)
            ).filter(Appointment.studio_id == studio_id)

            if start_date:
                query = query.filter(Appointment.appointment_date >= start_date)
            if end_date:
                query = query.filter(Appointment.appointment_date <= end_date)

            appointments = query.all()

        period = {
            "start": start_date.isoformat() if start_date else None,
            "end": end_date.isoformat() if end_date else None
        }

        if not appointments:
            return {
                "studio_id": str(studio_id),
                "period": period,
                "total_appointments": 0,
                "confirmed_appointments": 0,
                "cancelled_appointments": 0,
                "no_show_rate": 0.0,
                "by_status": {},
                "by_source": {},
                "peak_hours": [],
                "revenue_by_service": {},
                "average_booking_lead_time": None
            }

        total_appointments = len(appointments)

        by_status = Counter(appt.status or "unknown" for appt in appointments)
        by_source = Counter(appt.booking_source or "unknown" for appt in appointments)

        # Only appointments that still hold their slot count towards peak hours
        hours = Counter(appt.start_time.hour for appt in appointments if appt.occupies_slot)
        peak_hours = [
            {"hour": hour, "appointments": count}
            for hour, count in sorted(hours.items(), key=lambda item: (-item[1], item[0]))[:3]
        ]

        revenue_by_service: Dict[str, Decimal] = {}
        for appt in appointments:
            if appt.status != AppointmentStatus.COMPLETED.value:
                continue
            name = appt.service.name if appt.service else "unknown"
            revenue_by_service[name] = revenue_by_service.get(name, Decimal("0")) + Decimal(appt.paid_amount or 0)

        lead_times = []
        for appt in appointments:
            if not appt.created_at:
                continue
            created_at = appt.created_at
            if created_at.tzinfo is not None:
                created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
            starts_at = datetime.combine(appt.appointment_date, appt.start_time)
            lead_times.append((starts_at - created_at).total_seconds() / 3600)

        no_shows = by_status.get(AppointmentStatus.NO_SHOW.value, 0)

        return {
            "studio_id": str(studio_id),
            "period": period,
            "total_appointments": total_appointments,
            "confirmed_appointments": by_status.get(AppointmentStatus.CONFIRMED.value, 0),
            "cancelled_appointments": by_status.get(AppointmentStatus.CANCELLED.value, 0),
            "no_show_rate": round(no_shows / total_appointments, 4),
            "by_status": dict(by_status),
            "by_source": dict(by_source),
            "peak_hours": peak_hours,
            "revenue_by_service": {name: float(amount) for name, amount in revenue_by_service.items()},
            "average_booking_lead_time": round(sum(lead_times) / len(lead_times), 2) if lead_times else None
        }

    @staticmethod
    def serialize_appointment(appointment: Appointment, detailed: bool = False) -> Dict[str, Any]:
        """Convert Appointment model to dictionary."""
        base = {
            "id": str(appointment.id),
            "studio_id": str(appointment.studio_id),
            "appointment_date": appointment.appointment_date.isoformat(),
            "start_time": format_time(appointment.start_time),
            "end_time": format_time(appointment.end_time),
            "status": appointment.status,
            "booking_source": appointment.booking_source,
            "notes": appointment.notes,
            "total_price": float(appointment.total_price) if appointment.total_price is not None else None,
            "paid_amount": float(appointment.paid_amount) if appointment.paid_amount is not None else None,
            "payment_status": appointment.payment_status,
            "client": {
                "id": str(appointment.client.id),
                "first_name": appointment.client.first_name,
                "last_name": appointment.client.last_name,
                "phone": appointment.client.phone,
            } if appointment.client else None,
            "service": appointment.service.to_summary() if appointment.service else None,
            "team_member": appointment.team_member.to_summary() if appointment.team_member else None,
            "location": appointment.location.to_summary() if appointment.location else None,
            "created_at": appointment.created_at.isoformat() if appointment.created_at else None,
            "updated_at": appointment.updated_at.isoformat() if appointment.updated_at else None
        }

        if detailed:
            base.update({
                "internal_notes": appointment.internal_notes,
                "confirmation_sent_at": appointment.confirmation_sent_at.isoformat() if appointment.confirmation_sent_at else None,
                "reminder_sent_at": appointment.reminder_sent_at.isoformat() if appointment.reminder_sent_at else None,
                "client_arrived_at": appointment.client_arrived_at.isoformat() if appointment.client_arrived_at else None,
                "service_started_at": appointment.service_started_at.isoformat() if appointment.service_started_at else None,
                "service_completed_at": appointment.service_completed_at.isoformat() if appointment.service_completed_at else None
            })

        return base
