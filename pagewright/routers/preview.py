import logging

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from pagewright.models.render import RenderRequest, RenderResult
from pagewright.services.renderer import render_page

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter(prefix="/preview", tags=["Preview"])


@router.post(
    "/render",
    response_model=RenderResult,
    summary="Render one page without publishing",
    description=(
        "Compiles a single document tree into body HTML, the shared stylesheet "
        "and head tags, exactly as the publish pipeline would for the given "
        "`current_slug`.  Nothing is stored or uploaded."
    ),
)
@limiter.limit("30/minute")
async def preview_render(request: Request, body: RenderRequest) -> RenderResult:
    logger.info(
        "Preview render request",
        extra={"page_id": body.page_id, "current_slug": body.current_slug},
    )
    return render_page(body)
