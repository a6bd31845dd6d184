from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from marketing_factory.db.enums import ImageTypeEnum
from marketing_factory.db.models import GeneratedImage
from marketing_factory.db.repositories.base import Repository


class ImagesRepository(Repository):
    def list(self, project_id: UUID, image_type: Optional[ImageTypeEnum] = None) -> List[GeneratedImage]:
        stmt = select(GeneratedImage).where(GeneratedImage.project_id == project_id)
        if image_type:
            stmt = stmt.where(GeneratedImage.image_type == image_type)
        stmt = stmt.order_by(GeneratedImage.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, image_id: UUID) -> Optional[GeneratedImage]:
        return self.session.get(GeneratedImage, image_id)

    def create(self, project_id: UUID, image_type: ImageTypeEnum, prompt: str, image_url: str, **fields) -> GeneratedImage:
        image = GeneratedImage(
            project_id=project_id,
            image_type=image_type,
            prompt=prompt,
            image_url=image_url,
            **fields,
        )
        return self.save(image)
