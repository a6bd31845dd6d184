from typing import Optional
from uuid import UUID

from sqlalchemy import select

from marketing_factory.db.models import Project
from marketing_factory.db.repositories.base import Repository


class ProjectsRepository(Repository):
    def get(self, user_id: str, project_id: UUID) -> Optional[Project]:
        stmt = select(Project).where(Project.user_id == user_id, Project.id == project_id)
        return self.session.scalars(stmt).first()

    def get_any(self, project_id: UUID) -> Optional[Project]:
        """Fetch a project regardless of owner; callers must check `user_id` themselves."""
        return self.session.get(Project, project_id)

    def create(self, user_id: str, url: str, name: str, commit: bool = True, **fields) -> Project:
        project = Project(user_id=user_id, url=url, name=name, **fields)
        self.session.add(project)
        if not commit:
            self.session.flush()
            return project
        self.session.commit()
        self.session.refresh(project)
        return project

    def update(self, project: Project, **fields) -> Project:
        for key, value in fields.items():
            setattr(project, key, value)
        return self.save(project)
