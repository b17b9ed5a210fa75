import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Appointment lifecycle
STATUS_SCHEDULED = "SCHEDULED"
STATUS_CONFIRMED = "CONFIRMED"
STATUS_COMPLETED = "COMPLETED"
STATUS_CANCELLED = "CANCELLED"
STATUS_NO_SHOW = "NO_SHOW"
APPOINTMENT_STATUSES = (
    STATUS_SCHEDULED,
    STATUS_CONFIRMED,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    STATUS_NO_SHOW,
)
# Statuses that hold a slot on the provider's calendar
BLOCKING_STATUSES = (STATUS_SCHEDULED, STATUS_CONFIRMED)

PAYMENT_PENDING = "PENDING"
PAYMENT_PAID = "PAID"
PAYMENT_REFUNDED = "REFUNDED"
PAYMENT_FAILED = "FAILED"

CANCELLATION_POLICIES = ("FLEXIBLE", "MODERATE", "STANDARD", "STRICT")

ROLE_CUSTOMER = "CUSTOMER"
ROLE_PROVIDER = "PROVIDER"
ROLE_ADMIN = "ADMIN"

# Accounts created by guest bookings, claimed on first sign-in
GUEST_AUTH_PREFIX = "guest_"

WAITLIST_ACTIVE = "ACTIVE"
WAITLIST_NOTIFIED = "NOTIFIED"
WAITLIST_CANCELLED = "CANCELLED"


def generate_id():
    """Generate a UUID4 primary key"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    auth_id = Column(String(255), unique=True, index=True, nullable=False)  # Identity provider subject
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)
    role = Column(String(20), default=ROLE_CUSTOMER, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer_profile = relationship("CustomerProfile", back_populates="user", uselist=False)
    provider_profile = relationship("ProviderProfile", back_populates="user", uselist=False)

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or self.email


class CustomerProfile(Base):
    __tablename__ = "customer_profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    phone = Column(String(50), nullable=True)  # E.164
    loyalty_points = Column(Integer, default=0, nullable=False)
    lifetime_points = Column(Integer, default=0, nullable=False)  # Drives membership tier
    # Notification preferences
    email_enabled = Column(Boolean, default=True, nullable=False)
    sms_enabled = Column(Boolean, default=True, nullable=False)
    reminder_before_24h = Column(Boolean, default=True, nullable=False)
    reminder_before_2h = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="customer_profile")
    points_history = relationship(
        "PointsTransaction", back_populates="customer_profile", cascade="all, delete-orphan"
    )


class ProviderProfile(Base):
    __tablename__ = "provider_profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    business_name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(255), nullable=True)
    state = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    cancellation_policy = Column(String(20), default="STANDARD", nullable=False)
    custom_cancellation_hours = Column(Float, nullable=True)  # Overrides policy when both set
    custom_cancellation_fee = Column(Float, nullable=True)  # Percentage 0-100
    booking_slug = Column(String(100), unique=True, index=True, nullable=True)
    public_booking_enabled = Column(Boolean, default=True, nullable=False)
    qr_code_enabled = Column(Boolean, default=True, nullable=False)
    # Denormalized from reviews
    average_rating = Column(Float, default=0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)
    # Google Calendar sync (refresh token encrypted with Fernet)
    google_refresh_token = Column(Text, nullable=True)
    google_calendar_id = Column(String(255), default="primary", nullable=True)
    google_user_email = Column(String(255), nullable=True)
    calendar_sync_enabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="provider_profile")
    services = relationship("Service", back_populates="provider")
    staff = relationship("Staff", back_populates="provider")
    availability = relationship("Availability", back_populates="provider")
    appointments = relationship("Appointment", back_populates="provider")
    reviews = relationship("Review", back_populates="provider")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False)  # Minutes
    price = Column(Float, nullable=False)
    category = Column(String(100), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("ProviderProfile", back_populates="services")


class Staff(Base):
    __tablename__ = "staff"

    id = Column(String(36), primary_key=True, default=generate_id)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("ProviderProfile", back_populates="staff")


class Availability(Base):
    __tablename__ = "availability"
    __table_args__ = (UniqueConstraint("provider_id", "day_of_week", name="uq_availability_day"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    active = Column(Boolean, default=True, nullable=False)

    provider = relationship("ProviderProfile", back_populates="availability")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    assigned_to_id = Column(String(36), ForeignKey("staff.id"), nullable=True)
    date = Column(Date, index=True, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM provider-local
    end_time = Column(String(5), nullable=False)  # HH:MM provider-local
    status = Column(String(20), default=STATUS_SCHEDULED, index=True, nullable=False)
    notes = Column(Text, nullable=True)
    amount = Column(Float, nullable=False)
    tip_amount = Column(Float, default=0, nullable=False)
    payment_status = Column(String(20), default=PAYMENT_PENDING, nullable=False)
    payment_id = Column(String(255), index=True, nullable=True)  # Checkout session id
    deposit_required = Column(Boolean, default=False, nullable=False)
    deposit_amount = Column(Float, nullable=True)
    deposit_paid = Column(Boolean, default=False, nullable=False)
    cancellation_policy = Column(String(20), nullable=True)  # Snapshot at booking time
    coupon_code = Column(String(50), nullable=True)
    discount_amount = Column(Float, default=0, nullable=False)
    google_event_id = Column(String(255), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("User")
    provider = relationship("ProviderProfile", back_populates="appointments")
    service = relationship("Service")
    assigned_to = relationship("Staff")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("customer_id", "provider_id", name="uq_review_customer_provider"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)  # Has a completed appointment
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("User")
    provider = relationship("ProviderProfile", back_populates="reviews")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), index=True, nullable=True)
    type = Column(String(50), nullable=False)  # APPOINTMENT_REMINDER, APPOINTMENT_CONFIRMED, DEPOSIT_REQUIRED
    channel = Column(String(10), nullable=False)  # EMAIL, SMS
    status = Column(String(10), default="PENDING", index=True, nullable=False)  # PENDING, SENT, FAILED
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
    scheduled_for = Column(DateTime, index=True, nullable=False)
    sent_at = Column(DateTime, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User")
    appointment = relationship("Appointment")


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(String(36), primary_key=True, default=generate_id)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    code = Column(String(50), unique=True, index=True, nullable=False)  # Stored upper-case
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    discount_type = Column(String(20), nullable=False)  # PERCENTAGE, FIXED
    discount_value = Column(Float, nullable=False)
    max_discount = Column(Float, nullable=True)
    min_purchase = Column(Float, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, default=0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class PointsTransaction(Base):
    __tablename__ = "points_transactions"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_profile_id = Column(
        String(36), ForeignKey("customer_profiles.id"), index=True, nullable=False
    )
    type = Column(String(10), nullable=False)  # EARN, REDEEM
    amount = Column(Integer, nullable=False)
    description = Column(String(255), nullable=True)
    reference_id = Column(String(36), nullable=True)  # Appointment or reward id
    created_at = Column(DateTime, server_default=func.now())

    customer_profile = relationship("CustomerProfile", back_populates="points_history")


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "provider_id", name="uq_favorite_user_provider"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("ProviderProfile")


class WaitlistEntry(Base):
    __tablename__ = "waitlist_entries"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    provider_id = Column(String(36), ForeignKey("provider_profiles.id"), index=True, nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    date = Column(Date, index=True, nullable=False)
    start_time = Column(String(5), nullable=True)  # Preferred slot, HH:MM
    end_time = Column(String(5), nullable=True)
    flexible = Column(Boolean, default=False, nullable=False)  # Any time that day
    notes = Column(Text, nullable=True)
    status = Column(String(20), default=WAITLIST_ACTIVE, index=True, nullable=False)
    notified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    customer = relationship("User")
    provider = relationship("ProviderProfile")
    service = relationship("Service")
