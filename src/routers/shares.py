"""Share routes: per-user listings and downloads by share link."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from ..core.dependencies import get_share_service
from ..middleware.validation import require_user_id
from ..schemas.upload import ShareListResponse
from ..services.share_service import ShareService

router = APIRouter(tags=["shares"])


@router.get("/my-shares", response_model=ShareListResponse)
async def list_shares(
    user_id: Optional[str] = Query(None),
    share_service: ShareService = Depends(get_share_service),
):
    """List the user's shares, newest first."""
    return await share_service.list_shares(require_user_id(user_id))


@router.get("/share/{share_link}")
async def download_share(
    share_link: str,
    share_service: ShareService = Depends(get_share_service),
):
    """Download the file behind a share link."""
    return await share_service.download(share_link)
