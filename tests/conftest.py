import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Optional

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

_DB_DIR = tempfile.mkdtemp(prefix="marketing-factory-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DB_DIR}/test.db")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("WORKFLOW_MODE", "inline")

from fastapi.testclient import TestClient
from jose import jwt

from marketing_factory.auth.dependencies import AuthContext, get_current_user
from marketing_factory.config import settings
from marketing_factory.db.base import Base, SessionLocal, engine
from marketing_factory.db.deps import get_session
from marketing_factory.db.enums import AnalysisStatusEnum, VideoStatusEnum
from marketing_factory.db.models import Project
from marketing_factory.main import app
from marketing_factory.schemas.marketing import (
    AdCopyResult,
    AdCopyVariation,
    CompetitorAnalysis,
    CompetitorEntry,
    InfluencerProfile,
    MarketingConstitution,
    ProjectAnalysis,
    VisualProfile,
)
from marketing_factory.workflows.deps import get_marketing_engine
from marketing_factory.workflows.types import (
    ImageResult,
    InfluencerDraft,
    OnboardResult,
    VideoResult,
)

TEST_USER_ID = "test-user"
OTHER_USER_ID = "someone-else"


class FakeMarketingEngine:
    """Records every call; returns canned results unless told to fail."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.fail_on: Optional[str] = None
        self.video_url: Optional[str] = "https://cdn.example.com/videos/1.mp4"
        self._influencer_count = 0

    def _record(self, name: str, **kwargs) -> None:
        self.calls.append((name, kwargs))
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def onboard(self, url, *, user_id, language="en"):
        self._record("onboard", url=url, user_id=user_id, language=language)
        return OnboardResult(
            url=url,
            analysis=ProjectAnalysis(
                name="Example Co",
                description="Example description",
                valueProposition="Saves time",
                competitors=["Rival One", "Rival Two"],
            ),
            constitution=MarketingConstitution(brandVoice="Friendly"),
            screenshots=["https://image.thum.io/get/width/1440/crop/900/https://example.com"],
        )

    def draft_influencer(self, project, *, gender="female"):
        self._record("draft_influencer", project_id=project.id, gender=gender)
        self._influencer_count += 1
        return InfluencerDraft(
            profile=InfluencerProfile(
                name=f"Persona {self._influencer_count}",
                personality="Warm",
                backstory="Started small",
                appearanceDescription="Smiling",
                visualProfile=VisualProfile(gender=gender),
            ),
            avatar_url=f"https://ui-avatars.com/api/?name=Persona+{self._influencer_count}",
            voice_name="Kling AI Native",
        )

    def generate_video(self, job, *, on_status):
        self._record("generate_video", job=job)
        on_status(VideoStatusEnum.voicing)
        on_status(VideoStatusEnum.rendering)
        return VideoResult(
            title=job.title,
            script="Hook. Body. CTA.",
            hook="Hook.",
            cta="CTA.",
            hashtags=["#example"],
            video_url=self.video_url,
            thumbnail_url="https://cdn.example.com/thumbs/1.png",
            duration=10,
            theme_tag="morning-routine",
        )

    def analyze_competitors(self, project):
        self._record("analyze_competitors", project_id=project.id)
        return CompetitorAnalysis(
            competitors=[CompetitorEntry(name="Rival One", strengths=["Brand"], ourAdvantage="Faster")],
            marketPosition="Challenger",
        )

    def generate_ad_copy(self, project, *, influencer_name=None, platform=None):
        self._record("generate_ad_copy", project_id=project.id, influencer_name=influencer_name, platform=platform)
        return AdCopyResult(
            variations=[
                AdCopyVariation(id=1, approach="Emotional", headline="Meet Example", body="Body", cta="Go")
            ]
        )

    def generate_image(self, project, *, prompt, image_type, platform, brand_colors, size=None):
        self._record(
            "generate_image",
            project_id=project.id,
            prompt=prompt,
            image_type=image_type,
            platform=platform,
            brand_colors=brand_colors,
            size=size,
        )
        width, height = size or (1080, 1080)
        return ImageResult(
            image_url="https://cdn.example.com/images/1.png",
            width=width,
            height=height,
            enhanced_prompt=f"A high-end, photorealistic {prompt}",
        )

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture()
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def auth_context() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID)


@pytest.fixture()
def fake_engine() -> FakeMarketingEngine:
    return FakeMarketingEngine()


@pytest.fixture()
def override_dependencies(db_session, fake_engine):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_marketing_engine] = lambda: fake_engine
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def anonymous_client(override_dependencies):
    """Real bearer-token authentication; no user override."""
    return TestClient(app)


@pytest.fixture()
def api_client(override_dependencies, auth_context):
    app.dependency_overrides[get_current_user] = lambda: auth_context
    return TestClient(app)


@pytest.fixture()
def make_token():
    def _make(sub: Optional[str] = TEST_USER_ID, **claims) -> str:
        now = int(time.time())
        payload = {"aud": settings.AUTH_AUDIENCE, "iat": now, "exp": now + 600, **claims}
        if sub is not None:
            payload["sub"] = sub
        return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm="HS256")

    return _make


@pytest.fixture()
def make_project(db_session):
    def _make(user_id: str = TEST_USER_ID, **fields) -> Project:
        values = {
            "url": "https://example.com",
            "name": "Example Co",
            "description": "Example description",
            "value_proposition": "Saves time",
            "target_audience": {"demographics": ["founders"], "interests": ["growth"], "painPoints": ["time"]},
            "competitors": ["Rival One"],
            "marketing_constitution": MarketingConstitution().model_dump(),
            "analysis_status": AnalysisStatusEnum.completed,
        }
        values.update(fields)
        project = Project(user_id=user_id, **values)
        db_session.add(project)
        db_session.commit()
        db_session.refresh(project)
        return project

    return _make
