from typing import Any, Dict
from uuid import UUID

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from marketing_factory.auth.dependencies import AuthContext
from marketing_factory.db.models import Project
from marketing_factory.db.repositories.projects import ProjectsRepository


def row_to_dict(row: Any) -> Dict[str, Any]:
    """Column-named JSON view of an ORM row (e.g. ``video_metadata`` is emitted as ``metadata``)."""
    mapper = inspect(row).mapper
    return jsonable_encoder({attr.columns[0].name: getattr(row, attr.key) for attr in mapper.column_attrs})


def get_owned_project(session: Session, auth: AuthContext, project_id: UUID) -> Project:
    project = ProjectsRepository(session).get(user_id=auth.user_id, project_id=project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def ensure_project_owner(session: Session, auth: AuthContext, project_id: UUID) -> Project:
    """For mutations addressed by a child row: the parent must exist and belong to the caller."""
    project = ProjectsRepository(session).get_any(project_id)
    if not project or project.user_id != auth.user_id:
        raise HTTPException(status_code=403, detail="Not authorized")
    return project
