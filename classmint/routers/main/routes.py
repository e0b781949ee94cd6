from fastapi import APIRouter, Request

from classmint.config import settings
from classmint.utils import pop_notices

router = APIRouter(tags=["main"])


@router.get("/", name="main.index")
def index():
    return {"app": settings.APP_NAME, "version": settings.APP_VERSION}


@router.get("/notices", name="main.notices")
def notices(request: Request):
    """Pops the notices queued for this browser session."""
    return pop_notices(request)
