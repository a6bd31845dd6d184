from typing import Iterable, List
from uuid import UUID

from sqlalchemy import select

from marketing_factory.db.enums import AssetTypeEnum
from marketing_factory.db.models import Asset
from marketing_factory.db.repositories.base import Repository


class AssetsRepository(Repository):
    def list(self, project_id: UUID) -> List[Asset]:
        stmt = select(Asset).where(Asset.project_id == project_id).order_by(Asset.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def create_many(
        self,
        project_id: UUID,
        asset_type: AssetTypeEnum,
        files: Iterable[tuple[str, str]],
        commit: bool = True,
    ) -> List[Asset]:
        assets = [
            Asset(project_id=project_id, asset_type=asset_type, file_name=file_name, file_path=file_path)
            for file_name, file_path in files
        ]
        if not assets:
            return []
        self.session.add_all(assets)
        if not commit:
            self.session.flush()
            return assets
        self.session.commit()
        for asset in assets:
            self.session.refresh(asset)
        return assets
