import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
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


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class AuthUser(Base):
    """Login identity. Email/password users have a password hash, phone users do not."""

    __tablename__ = "auth_users"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), unique=True, index=True, nullable=True)  # +91XXXXXXXXXX
    password_hash = Column(String(255), nullable=True)
    # role / full_name / phone supplied at sign-up, used until the profile exists
    user_metadata = Column(JSON, default=dict, nullable=True)
    email_confirmed = Column(Boolean, default=False, nullable=False)
    last_sign_in_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile", back_populates="user", uselist=False)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, ForeignKey("auth_users.id", ondelete="CASCADE"), primary_key=True)
    role = Column(String(20), nullable=False, default="customer", index=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True, index=True)  # 10 digit national number
    avatar_url = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    # Professional-only fields
    rating_average = Column(Float, default=0.0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    experience_years = Column(Integer, nullable=True)
    skills = Column(JSON, default=list, nullable=True)
    hourly_rate = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("AuthUser", back_populates="profile")
    addresses = relationship("Address", back_populates="user", cascade="all, delete-orphan")
    offered_services = relationship(
        "ProfessionalService", back_populates="professional", cascade="all, delete-orphan"
    )
    documents = relationship(
        "ProfessionalDocument",
        back_populates="professional",
        foreign_keys="ProfessionalDocument.professional_id",
        cascade="all, delete-orphan",
    )


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(50), nullable=True)  # home, work, other
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), default="India", nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("Profile", back_populates="addresses")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    subcategory = Column(String(100), nullable=True)
    base_price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, default=60, nullable=False)
    image_url = Column(String(500), nullable=True)
    status = Column(String(20), default="active", nullable=False, index=True)  # active, inactive, suspended
    created_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    offerings = relationship("ProfessionalService", back_populates="service", cascade="all, delete-orphan")


class ProfessionalService(Base):
    __tablename__ = "professional_services"
    __table_args__ = (UniqueConstraint("professional_id", "service_id", name="uq_professional_service"),)

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, nullable=True)  # overrides the service default
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    professional = relationship("Profile", back_populates="offered_services")
    service = relationship("Service", back_populates="offerings")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    customer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    professional_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    professional_service_id = Column(
        Integer, ForeignKey("professional_services.id", ondelete="SET NULL"), nullable=True
    )
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    # pending, confirmed, in_progress, completed, cancelled, refunded
    status = Column(String(20), default="pending", nullable=False, index=True)
    scheduled_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    total_amount = Column(Float, nullable=False)
    service_fee = Column(Float, default=0.0, nullable=False)
    discount_amount = Column(Float, default=0.0, nullable=False)
    final_amount = Column(Float, nullable=False)
    special_instructions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Profile", foreign_keys=[customer_id])
    professional = relationship("Profile", foreign_keys=[professional_id])
    service = relationship("Service")
    address = relationship("Address")
    payment = relationship("Payment", back_populates="booking", uselist=False)
    review = relationship("Review", back_populates="booking", uselist=False)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    # One payment row per booking; gateway callbacks upsert on this key
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    # pending, processing, completed, failed, refunded, cancelled
    status = Column(String(20), default="pending", nullable=False, index=True)
    method = Column(String(20), nullable=True)  # credit_card, debit_card, upi, wallet, net_banking, cash
    gateway_order_id = Column(String(100), nullable=True, index=True)
    transaction_id = Column(String(100), nullable=True, index=True)  # gateway payment id
    payment_gateway = Column(String(50), nullable=True)
    gateway_response = Column(JSON, nullable=True)
    refund_amount = Column(Float, nullable=True)
    refund_reason = Column(Text, nullable=True)
    refunded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="payment")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    professional_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="review")
    customer = relationship("Profile", foreign_keys=[customer_id])


class AvailabilitySlot(Base):
    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(20), default="available", nullable=False)  # available, booked, unavailable
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurrence_pattern = Column(String(50), nullable=True)  # daily, weekly
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AdminAction(Base):
    """Audit trail of admin mutations"""

    __tablename__ = "admin_actions"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    action_type = Column(String(50), nullable=False, index=True)
    target_type = Column(String(50), nullable=True)  # user, booking, service, review, payment, banner
    target_id = Column(String(64), nullable=True)
    description = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    action_metadata = Column("metadata", JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False, index=True)


class ProfessionalDocument(Base):
    __tablename__ = "professional_documents"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(50), nullable=False)  # id_proof, address_proof, certification
    document_name = Column(String(255), nullable=False)
    file_key = Column(String(500), nullable=False)  # object storage key
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, approved, rejected
    rejection_reason = Column(Text, nullable=True)
    verified_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    professional = relationship("Profile", back_populates="documents", foreign_keys=[professional_id])


class ProfessionalBankAccount(Base):
    __tablename__ = "professional_bank_accounts"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    account_holder_name = Column(String(255), nullable=False)
    account_number_encrypted = Column(Text, nullable=False)  # Fernet token
    account_number_last4 = Column(String(4), nullable=False)
    ifsc_code = Column(String(11), nullable=False)
    bank_name = Column(String(255), nullable=False)
    branch_name = Column(String(255), nullable=True)
    account_type = Column(String(20), default="savings", nullable=False)  # savings, current
    is_primary = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OtpVerification(Base):
    __tablename__ = "otp_verifications"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(10), nullable=False, index=True)
    otp = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)


class SmsLog(Base):
    """Record of every SMS dispatched through the OTP provider"""

    __tablename__ = "sms_logs"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(20), nullable=False, index=True)
    message_type = Column(String(50), nullable=False)  # login_otp
    status = Column(String(20), nullable=False)  # sent, failed
    provider_request_id = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class HomepageBanner(Base):
    __tablename__ = "homepage_banners"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    link_url = Column(String(500), nullable=True)
    link_text = Column(String(100), nullable=True)
    position = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class HomepageSection(Base):
    __tablename__ = "homepage_sections"

    id = Column(Integer, primary_key=True, index=True)
    section_type = Column(String(50), nullable=False, index=True)  # hero, features, testimonials, ...
    title = Column(String(255), nullable=True)
    subtitle = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    content = Column(JSON, nullable=True)  # items for list-style sections
    image_url = Column(String(500), nullable=True)
    background_color = Column(String(20), nullable=True)
    text_color = Column(String(20), nullable=True)
    position = Column(Integer, default=0, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class FooterSettings(Base):
    __tablename__ = "footer_settings"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String(255), nullable=True)
    company_description = Column(Text, nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    facebook_url = Column(String(500), nullable=True)
    twitter_url = Column(String(500), nullable=True)
    instagram_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    youtube_url = Column(String(500), nullable=True)
    quick_links = Column(JSON, default=list, nullable=True)  # [{"label": ..., "url": ...}]
    privacy_policy_url = Column(String(500), nullable=True)
    terms_url = Column(String(500), nullable=True)
    refund_policy_url = Column(String(500), nullable=True)
    newsletter_enabled = Column(Boolean, default=False, nullable=False)
    newsletter_title = Column(String(255), nullable=True)
    newsletter_description = Column(Text, nullable=True)
    copyright_text = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PageContent(Base):
    __tablename__ = "page_contents"
    __table_args__ = (UniqueConstraint("page_path", "content_key", name="uq_page_content_key"),)

    id = Column(Integer, primary_key=True, index=True)
    page_path = Column(String(255), nullable=False, index=True)  # e.g. /about
    content_key = Column(String(100), nullable=False)
    content_value = Column(Text, nullable=True)
    content_json = Column(JSON, nullable=True)
    content_type = Column(String(20), default="text", nullable=False)  # text, html, json, image
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
