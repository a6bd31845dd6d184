from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from marketing_factory.db.base import Base
from marketing_factory.db.enums import (
    AnalysisStatusEnum,
    AssetTypeEnum,
    ImageStatusEnum,
    ImageTypeEnum,
    InfluencerStatusEnum,
    PlatformEnum,
    PublishStatusEnum,
    SocialPlatformEnum,
    VideoStatusEnum,
)

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (sa.Index("idx_projects_user", "user_id"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    value_proposition: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_audience: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    competitors: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    marketing_constitution: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    competitor_analysis: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    ad_copy_variations: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    analysis_status: Mapped[AnalysisStatusEnum] = mapped_column(
        Enum(AnalysisStatusEnum, name="analysis_status"),
        nullable=False,
        default=AnalysisStatusEnum.pending,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class AIInfluencer(Base):
    __tablename__ = "ai_influencers"
    __table_args__ = (UniqueConstraint("project_id", name="uq_ai_influencers_project"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    gender: Mapped[str] = mapped_column(Text, nullable=False, default="female")
    personality: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    backstory: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    appearance_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    visual_profile: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    avatar_url: Mapped[str] = mapped_column(Text, nullable=False)
    voice_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    voice_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[InfluencerStatusEnum] = mapped_column(
        Enum(InfluencerStatusEnum, name="influencer_status"),
        nullable=False,
        default=InfluencerStatusEnum.draft,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (
        sa.Index("idx_videos_project", "project_id"),
        sa.Index("idx_videos_status_changed", "status", "status_changed_at"),
    )

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    influencer_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("ai_influencers.id", ondelete="SET NULL"), nullable=True
    )
    platform: Mapped[PlatformEnum] = mapped_column(Enum(PlatformEnum, name="video_platform"), nullable=False)
    status: Mapped[VideoStatusEnum] = mapped_column(
        Enum(VideoStatusEnum, name="video_status"),
        nullable=False,
        default=VideoStatusEnum.draft,
    )
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    script: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    audio_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    video_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    storyboard: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    status_history: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    status_changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class GeneratedImage(Base):
    __tablename__ = "generated_images"
    __table_args__ = (sa.Index("idx_generated_images_project", "project_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    image_type: Mapped[ImageTypeEnum] = mapped_column(Enum(ImageTypeEnum, name="image_type"), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    platform: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    brand_colors: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    has_logo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[ImageStatusEnum] = mapped_column(
        Enum(ImageStatusEnum, name="image_status"),
        nullable=False,
        default=ImageStatusEnum.ready,
    )
    image_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    asset_type: Mapped[AssetTypeEnum] = mapped_column(Enum(AssetTypeEnum, name="asset_type"), nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class SocialConnection(Base):
    __tablename__ = "social_connections"
    __table_args__ = (UniqueConstraint("user_id", "platform", name="uq_social_connections_user_platform"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    platform: Mapped[SocialPlatformEnum] = mapped_column(
        Enum(SocialPlatformEnum, name="social_platform"), nullable=False
    )
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    account_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PublishHistory(Base):
    __tablename__ = "publish_history"
    __table_args__ = (sa.Index("idx_publish_history_video", "video_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid4)
    video_id: Mapped[UUID] = mapped_column(ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    platform: Mapped[SocialPlatformEnum] = mapped_column(
        Enum(SocialPlatformEnum, name="social_platform"), nullable=False
    )
    status: Mapped[PublishStatusEnum] = mapped_column(Enum(PublishStatusEnum, name="publish_status"), nullable=False)
    post_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    post_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
