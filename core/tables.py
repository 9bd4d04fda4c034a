# =============================================================================
# core/tables.py - Database Tables
# =============================================================================
# SQLAlchemy ORM mappings for the listing platform:
# - AgentProfile: agents and admins, resolved from the session e-mail
# - Project: development/condo project a listing can belong to
# - Property: the listing itself, with lifecycle and freshness columns
# - PriceHistory: append-only audit of price changes (owned by Property)
# - Enquiry: inbound leads
# - Deal: pipeline entries with an open metadata document
# - PropertySubmission: public owner intake
# - Post: content published by agents or automation
# =============================================================================

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.models.enums import (
    DealType,
    EnquiryChannel,
    EnquiryStatus,
    ListingType,
    PostCategory,
    PriceChangeType,
    PropertyCategory,
    PropertyStatus,
    SubmissionStatus,
    UserRole,
    VerificationSource,
)
from lib.utils import utcnow


def _uuid() -> str:
    return str(uuid4())


def _enum(enum_cls) -> Enum:
    return Enum(enum_cls, native_enum=False, length=32, validate_strings=True)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


class AgentProfile(TimestampMixin, Base):
    __tablename__ = "agent_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    line_id: Mapped[str | None] = mapped_column(String(100))
    whatsapp: Mapped[str | None] = mapped_column(String(50))
    image_url: Mapped[str | None] = mapped_column(Text)
    languages: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(200))
    role: Mapped[UserRole] = mapped_column(_enum(UserRole), default=UserRole.AGENT, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    name_th: Mapped[str | None] = mapped_column(String(200))
    lat: Mapped[Decimal | None] = mapped_column(Numeric(10, 7))
    lng: Mapped[Decimal | None] = mapped_column(Numeric(10, 7))
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(String(100))
    completion_year: Mapped[int | None] = mapped_column(Integer)


class Property(TimestampMixin, Base):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    reference_id: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(80), unique=True, nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    area: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)

    category: Mapped[PropertyCategory] = mapped_column(_enum(PropertyCategory), nullable=False)
    listing_type: Mapped[ListingType] = mapped_column(
        _enum(ListingType), default=ListingType.SALE, nullable=False
    )
    status: Mapped[PropertyStatus] = mapped_column(
        _enum(PropertyStatus), default=PropertyStatus.AVAILABLE, nullable=False, index=True
    )

    price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    rent_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    size: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    bedrooms: Mapped[int | None] = mapped_column(Integer)
    bathrooms: Mapped[int | None] = mapped_column(Integer)
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7))
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7))
    images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    commission_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    commission_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    agent_commission_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))

    owner_contact_details: Mapped[str | None] = mapped_column(Text)
    last_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    verification_source: Mapped[VerificationSource | None] = mapped_column(_enum(VerificationSource))

    agent_id: Mapped[str | None] = mapped_column(
        ForeignKey("agent_profiles.id", ondelete="SET NULL"), index=True
    )
    project_id: Mapped[str | None] = mapped_column(ForeignKey("projects.id", ondelete="SET NULL"))

    agent: Mapped[AgentProfile | None] = relationship()
    project: Mapped[Project | None] = relationship()
    price_history: Mapped[list["PriceHistory"]] = relationship(
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="PriceHistory.changed_at.desc()",
    )


class PriceHistory(Base):
    __tablename__ = "price_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    property_id: Mapped[str] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    rent_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    change_type: Mapped[PriceChangeType] = mapped_column(_enum(PriceChangeType), nullable=False)
    changed_by: Mapped[str | None] = mapped_column(String(36))
    notes: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    property: Mapped[Property] = relationship(back_populates="price_history")


class Enquiry(Base):
    __tablename__ = "enquiries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    property_id: Mapped[str | None] = mapped_column(
        ForeignKey("properties.id", ondelete="SET NULL"), index=True
    )
    agent_id: Mapped[str | None] = mapped_column(
        ForeignKey("agent_profiles.id", ondelete="SET NULL"), index=True
    )
    channel: Mapped[EnquiryChannel] = mapped_column(_enum(EnquiryChannel), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(50))
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[EnquiryStatus] = mapped_column(
        _enum(EnquiryStatus), default=EnquiryStatus.NEW, nullable=False
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    source: Mapped[str | None] = mapped_column(String(50))
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    agent: Mapped[AgentProfile | None] = relationship()


class Deal(TimestampMixin, Base):
    __tablename__ = "deals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    property_id: Mapped[str] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    client_phone: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)
    stage: Mapped[str] = mapped_column(String(50), default="NEW_LEAD", nullable=False)
    deal_type: Mapped[DealType | None] = mapped_column(_enum(DealType))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    monthly_rent: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    deposit_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    lease_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    lease_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_payment_due: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)

    property: Mapped[Property] = relationship()


class PropertySubmission(Base):
    __tablename__ = "property_submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    listing_type: Mapped[ListingType] = mapped_column(_enum(ListingType), nullable=False)
    category: Mapped[PropertyCategory] = mapped_column(_enum(PropertyCategory), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_line: Mapped[str | None] = mapped_column(String(100))
    contact_phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(100))
    commission: Mapped[str | None] = mapped_column(String(100))
    images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[SubmissionStatus] = mapped_column(
        _enum(SubmissionStatus), default=SubmissionStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(Text)
    category: Mapped[PostCategory] = mapped_column(
        _enum(PostCategory), default=PostCategory.NEWS, nullable=False
    )
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    author_id: Mapped[str | None] = mapped_column(
        ForeignKey("agent_profiles.id", ondelete="SET NULL")
    )
    featured_image: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
