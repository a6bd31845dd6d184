import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketing_factory.auth.dependencies import AuthContext, get_current_user
from marketing_factory.db.deps import get_session
from marketing_factory.db.enums import ImageStatusEnum, ImageTypeEnum
from marketing_factory.db.repositories.images import ImagesRepository
from marketing_factory.routers.common import ensure_project_owner, get_owned_project, row_to_dict
from marketing_factory.schemas.workflows import GenerateImageRequest
from marketing_factory.workflows.deps import get_marketing_engine
from marketing_factory.workflows.errors import WorkflowFailure
from marketing_factory.workflows.marketing import project_constitution
from marketing_factory.workflows.types import MarketingEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["images"])


@router.get("")
def list_images(
    projectId: UUID,
    imageType: Optional[ImageTypeEnum] = None,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> dict:
    project = get_owned_project(session, auth, projectId)
    images = ImagesRepository(session).list(project.id, image_type=imageType)
    return {"images": [row_to_dict(image) for image in images]}


@router.post("")
def generate_image(
    payload: GenerateImageRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    workflows: MarketingEngine = Depends(get_marketing_engine),
) -> dict:
    project = get_owned_project(session, auth, payload.projectId)
    if payload.brandColors is not None:
        brand_colors = payload.brandColors
    elif payload.hasLogo:
        brand_colors = project_constitution(project).visualGuidelines.colorPalette
    else:
        brand_colors = []

    try:
        result = workflows.generate_image(
            project,
            prompt=payload.prompt,
            image_type=payload.imageType,
            platform=payload.platform,
            brand_colors=brand_colors,
            size=(payload.width, payload.height) if payload.width and payload.height else None,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Image generation failed", extra={"project_id": str(project.id)})
        raise WorkflowFailure("Image generation failed", str(exc)) from exc

    try:
        image = ImagesRepository(session).create(
            project.id,
            payload.imageType,
            prompt=result.enhanced_prompt,
            image_url=result.image_url,
            width=result.width,
            height=result.height,
            platform=payload.platform,
            brand_colors=brand_colors,
            has_logo=payload.hasLogo,
            status=ImageStatusEnum.ready,
            image_metadata={"originalPrompt": payload.prompt, "enhancedPrompt": result.enhanced_prompt},
        )
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Generated image could not be saved", extra={"project_id": str(project.id)})
        # The image exists at the vendor; hand it back rather than discard it.
        return {
            "success": True,
            "image": {
                "imageUrl": result.image_url,
                "width": result.width,
                "height": result.height,
                "prompt": result.enhanced_prompt,
            },
            "dbError": str(exc),
        }
    return {"success": True, "image": row_to_dict(image)}


@router.delete("")
def delete_image(
    imageId: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> dict:
    repo = ImagesRepository(session)
    image = repo.get(imageId)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    ensure_project_owner(session, auth, image.project_id)
    repo.delete(image)
    return {"success": True}
