from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from marketing_factory.auth.dependencies import AuthContext, get_current_user
from marketing_factory.db.deps import get_session
from marketing_factory.db.repositories.videos import VideosRepository
from marketing_factory.routers.common import ensure_project_owner

router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.delete("/{video_id}")
def delete_video(
    video_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> dict:
    repo = VideosRepository(session)
    video = repo.get(video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    ensure_project_owner(session, auth, video.project_id)
    repo.delete(video)
    return {"success": True}
