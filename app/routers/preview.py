from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.deps import get_session
from app.services.lead_website import find_preview

router = APIRouter(prefix="/preview", tags=["preview"])


@router.get("/{token}")
def get_preview(token: str, session: Session = Depends(get_session)):
    site = find_preview(session, token)
    if site is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Preview not found or expired")
    files = site.get("files") or []
    return {
        "leadName": site.get("leadName"),
        "files": files,
        "primaryPage": "/index.html",
        "expiresAt": site.get("expiresAt"),
        "designStyle": site.get("designStyle"),
    }
