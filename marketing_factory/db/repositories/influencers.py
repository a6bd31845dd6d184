from __future__ import annotations

from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from marketing_factory.db.models import AIInfluencer, utcnow
from marketing_factory.db.repositories.base import Repository

_UPSERT_FIELDS = (
    "name",
    "gender",
    "personality",
    "backstory",
    "appearance_description",
    "visual_profile",
    "avatar_url",
    "voice_id",
    "voice_name",
    "status",
)


class InfluencersRepository(Repository):
    def get(self, influencer_id: UUID) -> Optional[AIInfluencer]:
        return self.session.get(AIInfluencer, influencer_id)

    def get_for_project(self, project_id: UUID) -> Optional[AIInfluencer]:
        stmt = (
            select(AIInfluencer)
            .where(AIInfluencer.project_id == project_id)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def upsert_for_project(self, project_id: UUID, **fields: Any) -> AIInfluencer:
        """
        Insert the project's influencer or replace the persona on the existing row.

        One statement keyed on the unique project_id, so concurrent callers always
        converge on a single row.
        """
        unknown = set(fields) - set(_UPSERT_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported influencer fields: {sorted(unknown)}")

        now = utcnow()
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            insert_fn = postgresql_insert
        elif dialect == "sqlite":
            insert_fn = sqlite_insert
        else:
            raise RuntimeError(f"Influencer upsert is not supported on {dialect}")

        stmt = insert_fn(AIInfluencer).values(
            id=uuid4(),
            project_id=project_id,
            created_at=now,
            updated_at=now,
            **fields,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[AIInfluencer.project_id],
            set_={**fields, "updated_at": now},
        )
        self.session.execute(stmt)
        self.session.commit()

        influencer = self.get_for_project(project_id)
        if influencer is None:
            raise RuntimeError("Influencer upsert did not produce a row")
        return influencer
