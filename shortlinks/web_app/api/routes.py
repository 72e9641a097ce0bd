"""API routes implementation."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

from shortlinks.lib.common.headers import build_base_url
from shortlinks.lib.common.url_builder import build_short_url
from shortlinks.lib.database.models import LinkRecord
from shortlinks.lib.errors import (
    CollisionError,
    CreationError,
    CustomCodesDisabledError,
    ExhaustedError,
    NotFoundError,
)
from shortlinks.lib.expiry import classify
from shortlinks.lib.registry import LinkRegistry
from shortlinks.lib.resolver import Expired, NotFound, resolve

from .schemas import (
    ClickResponse,
    CreateLinkRequest,
    ErrorResponse,
    HealthResponse,
    LinkDetailResponse,
    LinkResponse,
    ResolutionResponse,
    SimulateClickRequest,
    StatisticsResponse,
)

router = APIRouter()


def _registry(request: Request) -> LinkRegistry:
    return request.app.state.registry


def _short_url(request: Request, code: str) -> str:
    config = request.app.state.config
    base_url = build_base_url(
        headers=dict(request.headers),
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    return build_short_url(
        short_code=code,
        base_url=base_url,
        path_prefix=config.path_prefix,
    )


def _link_fields(request: Request, record: LinkRecord, now: datetime) -> dict:
    return {
        "code": record.code,
        "short_url": _short_url(request, record.code),
        "destination": record.destination,
        "created_at": record.created_at,
        "expires_at": record.expires_at,
        "owner": record.owner,
        "status": classify(record, now).value,
        "click_count": record.click_count,
    }


def _creation_status(error: CreationError) -> int:
    if isinstance(error, CollisionError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, ExhaustedError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(error, CustomCodesDisabledError):
        return status.HTTP_403_FORBIDDEN
    return status.HTTP_400_BAD_REQUEST


@router.post(
    "/links",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL or validity"},
        403: {"model": ErrorResponse, "description": "Custom codes disabled"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        503: {"model": ErrorResponse, "description": "No free short code found"},
    },
    summary="Create short link",
    description="Create a time-limited short link. Optionally provide a custom short code.",
)
async def create_link(request: Request, body: CreateLinkRequest):
    """Create a short link."""
    registry = _registry(request)
    config = request.app.state.config

    validity = body.validity_minutes
    if validity is None:
        validity = config.default_validity_minutes

    try:
        record = await registry.create(
            destination=body.url,
            validity_minutes=validity,
            requested_code=body.custom_code,
            owner=body.owner,
        )
    except CreationError as e:
        raise HTTPException(status_code=_creation_status(e), detail=str(e))

    return LinkResponse(**_link_fields(request, record, registry.clock()))


@router.get(
    "/links",
    response_model=List[LinkResponse],
    summary="List short links",
    description="List short links, newest first, optionally for one owner.",
)
async def list_links(request: Request, owner: Optional[str] = Query(None)):
    """List short links."""
    registry = _registry(request)
    now = registry.clock()

    records = await registry.list(owner=owner)
    return [LinkResponse(**_link_fields(request, r, now)) for r in records]


@router.get(
    "/links/{code}",
    response_model=LinkDetailResponse,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Get short link detail",
    description="Get a short link including its full click history.",
)
async def get_link_detail(request: Request, code: str):
    """Get a short link with its click history."""
    registry = _registry(request)

    try:
        record = await registry.get_detail(code)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return LinkDetailResponse(
        **_link_fields(request, record, registry.clock()),
        clicks=[ClickResponse(timestamp=c.timestamp, source=c.source) for c in record.clicks],
    )


@router.delete(
    "/links/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Delete short link",
)
async def delete_link(request: Request, code: str):
    """Delete a short link; its code becomes available again."""
    try:
        await _registry(request).delete(code)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/links/{code}/simulate",
    response_model=ResolutionResponse,
    responses={
        404: {"model": ResolutionResponse, "description": "Short code not found"},
        410: {"model": ResolutionResponse, "description": "Short link expired"},
    },
    summary="Simulate a click",
    description="Resolve a short code as a visitor would, without following the redirect.",
)
async def simulate_click(
    request: Request,
    code: str,
    body: Optional[SimulateClickRequest] = None,
):
    """Resolve a code and report the outcome."""
    registry = _registry(request)
    body = body or SimulateClickRequest()

    outcome = await resolve(registry, code, body.source, registry.clock())

    if isinstance(outcome, NotFound):
        response = ResolutionResponse(outcome=outcome.outcome, code=code)
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(outcome, Expired):
        response = ResolutionResponse(
            outcome=outcome.outcome, code=code, expires_at=outcome.expires_at
        )
        status_code = status.HTTP_410_GONE
    else:
        response = ResolutionResponse(
            outcome=outcome.outcome, code=code, destination=outcome.destination
        )
        status_code = status.HTTP_200_OK

    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get registry-wide statistics.",
)
async def get_statistics(request: Request):
    """Get registry statistics."""
    registry = _registry(request)

    stats = await registry.get_statistics(registry.clock())

    return StatisticsResponse(**stats)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    registry = _registry(request)

    health = await registry.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        storage="healthy" if health["storage"] else "unhealthy",
        timestamp=registry.clock(),
    )
