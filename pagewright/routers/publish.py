import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from pagewright.config import get_settings
from pagewright.errors import InvalidTransition, PreflightViolation, PublishFailure, ReferenceNotFound
from pagewright.models.publish_request import SetLatestPublishRequest
from pagewright.models.publish_response import (
    PublishListResponse,
    PublishResponse,
    PublishSummary,
    UnpublishResponse,
)
from pagewright.services.paths import HTML_CACHE_CONTROL
from pagewright.services.publisher import Publisher

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter(prefix="/projects/{project_id}", tags=["Publish"])


def _publisher(request: Request) -> Publisher:
    return request.app.state.publisher


def _tenant(x_tenant_id: Optional[str]) -> str:
    return (x_tenant_id or "").strip() or get_settings().default_tenant


def _not_found(exc: ReferenceNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail={"code": exc.code, "message": str(exc)})


@router.post(
    "/publish",
    response_model=PublishResponse,
    summary="Publish the project as a static site",
    description=(
        "Validates the project, renders every page and uploads the site under a "
        "fresh artifact root.  Each call creates a new publish record; a "
        "failed attempt is never retried in place."
    ),
)
@limiter.limit(get_settings().publish_rate_limit)
async def publish_project(
    request: Request,
    project_id: str,
    x_tenant_id: Optional[str] = Header(default=None),
) -> PublishResponse:
    tenant_id = _tenant(x_tenant_id)
    logger.info("Publish request received", extra={"tenant_id": tenant_id, "project_id": project_id})

    try:
        record = await _publisher(request).publish(tenant_id, project_id)
    except ReferenceNotFound as exc:
        raise _not_found(exc)
    except PreflightViolation as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": exc.code, "message": str(exc), "details": exc.details},
        )
    except PublishFailure as exc:
        raise HTTPException(
            status_code=500,
            detail={"code": exc.code, "message": str(exc), "publish_id": exc.publish_id},
        )

    return PublishResponse.from_record(record)


@router.get(
    "/publish/latest",
    response_model=Optional[PublishResponse],
    summary="Latest live publish of the project",
)
async def get_latest_publish(
    request: Request,
    project_id: str,
    x_tenant_id: Optional[str] = Header(default=None),
) -> Optional[PublishResponse]:
    try:
        record = await _publisher(request).get_latest_publish(_tenant(x_tenant_id), project_id)
    except ReferenceNotFound as exc:
        raise _not_found(exc)
    return PublishResponse.from_record(record) if record else None


@router.put(
    "/publish/latest",
    response_model=PublishResponse,
    summary="Point the project at an earlier live publish",
)
@limiter.limit(get_settings().publish_rate_limit)
async def set_latest_publish(
    request: Request,
    project_id: str,
    body: SetLatestPublishRequest,
    x_tenant_id: Optional[str] = Header(default=None),
) -> PublishResponse:
    try:
        record = await _publisher(request).set_latest_publish(
            _tenant(x_tenant_id), project_id, body.publish_id.strip()
        )
    except ReferenceNotFound as exc:
        raise _not_found(exc)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail={"code": exc.code, "message": str(exc)})
    return PublishResponse.from_record(record)


@router.get(
    "/publish/{publish_id}",
    response_model=PublishResponse,
    summary="Status of one publish attempt",
)
async def get_publish(
    request: Request,
    project_id: str,
    publish_id: str,
    x_tenant_id: Optional[str] = Header(default=None),
) -> PublishResponse:
    try:
        record = await _publisher(request).get_publish(_tenant(x_tenant_id), project_id, publish_id)
    except ReferenceNotFound as exc:
        raise _not_found(exc)
    return PublishResponse.from_record(record)


@router.get(
    "/publishes",
    response_model=PublishListResponse,
    summary="Publish history, newest first",
)
async def list_publishes(
    request: Request,
    project_id: str,
    limit: Optional[int] = Query(default=None, description="Maximum records to return (1–100, default 10)."),
    x_tenant_id: Optional[str] = Header(default=None),
) -> PublishListResponse:
    try:
        records = await _publisher(request).list_publishes(_tenant(x_tenant_id), project_id, limit)
    except ReferenceNotFound as exc:
        raise _not_found(exc)
    return PublishListResponse(
        publishes=[
            PublishSummary(
                publish_id=r.id, status=r.status, base_url=r.base_url, created_at=r.created_at
            )
            for r in records
        ]
    )


@router.post(
    "/unpublish",
    response_model=UnpublishResponse,
    summary="Take the project's site offline",
    description=(
        "Clears the latest-publish pointer.  Publish records and uploaded "
        "artifacts are kept; PUT /publish/latest brings a live publish back."
    ),
)
@limiter.limit(get_settings().publish_rate_limit)
async def unpublish_project(
    request: Request,
    project_id: str,
    x_tenant_id: Optional[str] = Header(default=None),
) -> UnpublishResponse:
    try:
        project = await _publisher(request).unpublish(_tenant(x_tenant_id), project_id)
    except ReferenceNotFound as exc:
        raise _not_found(exc)
    return UnpublishResponse(project_id=project.id, latest_publish_id=project.latest_publish_id)


@router.get(
    "/site/{request_path:path}",
    response_class=RedirectResponse,
    status_code=307,
    summary="Redirect to an object of the live site",
    description=(
        "Resolves a path on the project's live site to the object stored under "
        "the latest publish and redirects to its public URL."
    ),
)
async def get_site_object(
    request: Request,
    project_id: str,
    request_path: str,
    x_tenant_id: Optional[str] = Header(default=None),
) -> RedirectResponse:
    try:
        location = await _publisher(request).locate_published_object(
            _tenant(x_tenant_id), project_id, request_path
        )
    except ReferenceNotFound as exc:
        raise _not_found(exc)
    # The redirect follows the movable latest pointer; the target object does not move
    return RedirectResponse(
        location.public_url,
        status_code=307,
        headers={"Cache-Control": HTML_CACHE_CONTROL},
    )
