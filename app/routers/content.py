from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import AuthContext, get_current_user
from app.schemas.templates import ExtractContentRequest
from app.services.website_analyzer import extract_website_content

router = APIRouter(tags=["content"])


@router.post("/extract-content")
def extract_content(
    payload: ExtractContentRequest,
    _auth: AuthContext = Depends(get_current_user),
):
    if not (payload.url or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="URL is required")
    return extract_website_content(payload.url.strip())
