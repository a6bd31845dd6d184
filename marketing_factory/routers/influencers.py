from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from marketing_factory.auth.dependencies import AuthContext, get_current_user
from marketing_factory.db.deps import get_session
from marketing_factory.db.repositories.influencers import InfluencersRepository
from marketing_factory.routers.common import ensure_project_owner

router = APIRouter(prefix="/api/influencer", tags=["influencers"])


@router.delete("/{influencer_id}")
def delete_influencer(
    influencer_id: UUID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> dict:
    repo = InfluencersRepository(session)
    influencer = repo.get(influencer_id)
    if not influencer:
        raise HTTPException(status_code=404, detail="Influencer not found")
    ensure_project_owner(session, auth, influencer.project_id)
    repo.delete(influencer)
    return {"success": True}
