from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import (
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import (
    ArtifactTypeEnum,
    ClientActivityTypeEnum,
    ClientStatusEnum,
    CreditTransactionTypeEnum,
    LeadPriorityEnum,
    LeadStatusEnum,
    MessageRoleEnum,
    ProjectModeEnum,
    ProjectStatusEnum,
    PublishAccessLevelEnum,
    PublishSourceTypeEnum,
    PublishStatusEnum,
)

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = sa.JSON().with_variant(JSONB, "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )


def _updated_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
        nullable=False,
    )


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (sa.Index("idx_projects_user_created", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatusEnum] = mapped_column(
        Enum(ProjectStatusEnum, name="project_status"),
        server_default=ProjectStatusEnum.active.value,
        default=ProjectStatusEnum.active,
        nullable=False,
    )
    mode: Mapped[ProjectModeEnum] = mapped_column(
        Enum(ProjectModeEnum, name="project_mode"),
        server_default=ProjectModeEnum.playground.value,
        default=ProjectModeEnum.playground,
        nullable=False,
    )
    mode_data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)
    model_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class Artifact(Base):
    __tablename__ = "artifacts"
    __table_args__ = (UniqueConstraint("project_id", "type", name="uq_artifacts_project_type"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[ArtifactTypeEnum] = mapped_column(Enum(ArtifactTypeEnum, name="artifact_type"), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    previous_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (sa.Index("idx_messages_project_created", "project_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[MessageRoleEnum] = mapped_column(Enum(MessageRoleEnum, name="message_role"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, default=dict, nullable=False)
    created_at: Mapped[datetime] = _created_at()


class Lead(Base):
    __tablename__ = "leads"
    __table_args__ = (
        UniqueConstraint("project_id", "place_id", name="uq_leads_project_place"),
        sa.Index("idx_leads_project_score", "project_id", "score"),
        sa.Index("idx_leads_preview_token", "preview_token"),
        sa.CheckConstraint("score BETWEEN 0 AND 100", name="ck_leads_score_range"),
    )

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    industry: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_linkedin: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    place_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    review_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=50, server_default="50")
    score_breakdown: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    icp_score: Mapped[float] = mapped_column(Float, nullable=False, default=5, server_default="5")
    icp_match_reasons: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    pain_points: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    buying_signals: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    website_analysis: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    status: Mapped[LeadStatusEnum] = mapped_column(
        Enum(LeadStatusEnum, name="lead_status"),
        default=LeadStatusEnum.new,
        server_default=LeadStatusEnum.new.value,
        nullable=False,
    )
    priority: Mapped[LeadPriorityEnum] = mapped_column(
        Enum(LeadPriorityEnum, name="lead_priority"),
        default=LeadPriorityEnum.medium,
        server_default=LeadPriorityEnum.medium.value,
        nullable=False,
    )
    source: Mapped[str] = mapped_column(Text, nullable=False, default="manual", server_default="manual")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    preview_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    stripe_payment_link_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    stripe_payment_link_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    stripe_payment_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    deal_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    deal_currency: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class Client(Base):
    __tablename__ = "clients"
    __table_args__ = (sa.Index("idx_clients_project_created", "project_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    industry: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    primary_contact_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    primary_contact_email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    primary_contact_phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    primary_contact_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ClientStatusEnum] = mapped_column(
        Enum(ClientStatusEnum, name="client_status"),
        default=ClientStatusEnum.prospect,
        server_default=ClientStatusEnum.prospect.value,
        nullable=False,
    )
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(Text, nullable=False, default="manual_entry", server_default="manual_entry")
    payment_terms: Mapped[int] = mapped_column(Integer, nullable=False, default=30, server_default="30")
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="USD", server_default="USD")
    total_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    outstanding_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=0, server_default="0"
    )
    lifetime_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class ClientActivity(Base):
    __tablename__ = "client_activities"
    __table_args__ = (sa.Index("idx_client_activities_client_created", "client_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    client_id: Mapped[UUID] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[ClientActivityTypeEnum] = mapped_column(
        Enum(ClientActivityTypeEnum, name="client_activity_type"), nullable=False
    )
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, default=dict, nullable=False)
    user_name: Mapped[str] = mapped_column(Text, nullable=False, default="system", server_default="system")
    created_at: Mapped[datetime] = _created_at()


class PublishedWebsite(Base):
    __tablename__ = "published_websites"
    __table_args__ = (
        UniqueConstraint("subdomain", name="uq_published_websites_subdomain"),
        sa.Index("idx_published_websites_project", "project_id"),
    )

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    source_type: Mapped[PublishSourceTypeEnum] = mapped_column(
        Enum(PublishSourceTypeEnum, name="publish_source_type"), nullable=False
    )
    source_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    subdomain: Mapped[str] = mapped_column(Text, nullable=False)
    base_domain: Mapped[str] = mapped_column(Text, nullable=False)
    custom_domain: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vercel_project_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vercel_deployment_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deployment_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[PublishStatusEnum] = mapped_column(
        Enum(PublishStatusEnum, name="publish_status"),
        default=PublishStatusEnum.deploying,
        server_default=PublishStatusEnum.deploying.value,
        nullable=False,
    )
    access_level: Mapped[PublishAccessLevelEnum] = mapped_column(
        Enum(PublishAccessLevelEnum, name="publish_access_level"),
        default=PublishAccessLevelEnum.public,
        server_default=PublishAccessLevelEnum.public.value,
        nullable=False,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class UserProfile(Base):
    __tablename__ = "user_profiles"
    __table_args__ = (sa.CheckConstraint("credits >= 0", name="ck_user_profiles_credits_non_negative"),)

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    lifetime_credits_purchased: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"
    __table_args__ = (sa.Index("idx_credit_transactions_user_created", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("user_profiles.user_id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[CreditTransactionTypeEnum] = mapped_column(
        Enum(CreditTransactionTypeEnum, name="credit_transaction_type"), nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, default=dict, nullable=False)
    created_at: Mapped[datetime] = _created_at()
