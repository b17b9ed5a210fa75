"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import STATUS_CANCELLED, Appointment, CustomerProfile, ProviderProfile, Service, Staff, User


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def _with_relations(db: Session):
        return db.query(Appointment).options(
            joinedload(Appointment.customer).joinedload(User.customer_profile),
            joinedload(Appointment.provider),
            joinedload(Appointment.service),
            joinedload(Appointment.assigned_to),
        )

    @staticmethod
    def get_by_id(db: Session, appointment_id: str) -> Optional[Appointment]:
        return (
            AppointmentRepository._with_relations(db)
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def lock_provider(db: Session, provider_id: str) -> Optional[ProviderProfile]:
        """
        Take a row lock on the provider for the rest of the transaction.

        Serialises concurrent booking writes for one provider on databases
        with SELECT ... FOR UPDATE; SQLite ignores the lock.
        """
        return (
            db.query(ProviderProfile)
            .filter(ProviderProfile.id == provider_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_provider_by_slug(db: Session, slug: str) -> Optional[ProviderProfile]:
        return db.query(ProviderProfile).filter(ProviderProfile.booking_slug == slug).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_guest_user(db: Session, auth_id: str, email: str, first_name: str,
                          last_name: Optional[str], phone: str) -> User:
        user = User(auth_id=auth_id, email=email, first_name=first_name, last_name=last_name)
        user.customer_profile = CustomerProfile(phone=phone)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_staff(db: Session, staff_id: str) -> Optional[Staff]:
        return db.query(Staff).filter(Staff.id == staff_id).first()

    @staticmethod
    def get_staff_appointments(
        db: Session, staff_id: str, day: date, exclude_appointment_id: str
    ) -> list[Appointment]:
        """Non-cancelled appointments already assigned to a staff member on a day"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.assigned_to_id == staff_id,
                Appointment.date == day,
                Appointment.status != STATUS_CANCELLED,
                Appointment.id != exclude_appointment_id,
            )
            .all()
        )

    @staticmethod
    def list_for_customer(db: Session, customer_id: str, status: Optional[str] = None) -> list[Appointment]:
        query = AppointmentRepository._with_relations(db).filter(Appointment.customer_id == customer_id)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.date.desc(), Appointment.start_time.desc()).all()

    @staticmethod
    def list_for_provider(
        db: Session,
        provider_id: str,
        status: Optional[str] = None,
        staff_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Appointment]:
        query = AppointmentRepository._with_relations(db).filter(Appointment.provider_id == provider_id)
        if status:
            query = query.filter(Appointment.status == status)
        if staff_id:
            query = query.filter(Appointment.assigned_to_id == staff_id)
        if start_date:
            query = query.filter(Appointment.date >= start_date)
        if end_date:
            query = query.filter(Appointment.date <= end_date)
        return query.order_by(Appointment.date, Appointment.start_time).all()

    @staticmethod
    def create(db: Session, **appointment_data) -> Appointment:
        """Add an appointment. Caller commits."""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment
