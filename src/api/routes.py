"""FastAPI routes for the CD scan service.

Provides REST endpoints to run a scan, fetch a stored result, list the
caller's sessions and check service health.  Service dependencies are
resolved from ``app.state`` via FastAPI's ``Depends`` using the
``Annotated`` pattern; every scan endpoint requires a bearer token.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.auth import require_user
from src.api.schemas import (
    CDScanRequest,
    CDScanResponse,
    CDScanResultBody,
    ErrorResponse,
    HealthResponse,
    ProviderStatus,
    SessionListResponse,
    SessionSummary,
    StoredScanResponse,
)
from src.interfaces.scan_store import IScanStore
from src.pipeline.orchestrator import CDScanPipeline
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


def _get_pipeline(request: Request) -> CDScanPipeline:
    return request.app.state.pipeline


def _get_store(request: Request) -> IScanStore:
    return request.app.state.scan_store


UserId = Annotated[str, Depends(require_user)]
Pipeline = Annotated[CDScanPipeline, Depends(_get_pipeline)]
Store = Annotated[IScanStore, Depends(_get_store)]


# ---------------------------------------------------------------------------
# Scan endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/cd-scans",
    response_model=CDScanResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Identify a CD from photos",
)
async def create_cd_scan(
    body: CDScanRequest,
    user_id: UserId,
    pipeline: Pipeline,
    store: Store,
) -> CDScanResponse:
    """Run the identification pipeline on the submitted photos.

    Passing ``sessionId`` reprocesses an existing session of the caller;
    its stored result is replaced.
    """
    if len(body.image_urls) < pipeline.min_images:
        raise HTTPException(
            status_code=400,
            detail=f"At least {pipeline.min_images} photos are required",
        )

    if body.session_id is not None:
        session = await store.get_session(body.session_id)
        if session is None or session.user_id != user_id:
            raise HTTPException(status_code=404, detail=f"Unknown session: {body.session_id}")

    _logger.info(
        "cd_scan_requested",
        user_id=user_id,
        images=len(body.image_urls),
        reprocess=body.session_id is not None,
    )
    outcome = await pipeline.run(body.image_urls, user_id, session_id=body.session_id)
    return CDScanResponse.from_outcome(outcome)


@router.get(
    "/cd-scans/{session_id}",
    response_model=StoredScanResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Retrieve the stored result of a scan",
)
async def get_cd_scan(session_id: str, user_id: UserId, store: Store) -> StoredScanResponse:
    """Return the persisted result of one of the caller's sessions."""
    session = await store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    if session.user_id != user_id:
        raise HTTPException(status_code=403, detail="Session belongs to another user")

    result = await store.get_result(session_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No result stored for session: {session_id}")

    return StoredScanResponse(
        session_id=session_id,
        status=session.status,
        version=result.audit.version,
        result=CDScanResultBody.from_result(result),
        updated_at=result.updated_at,
    )


@router.get(
    "/cd-scans",
    response_model=SessionListResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List the caller's scan sessions",
)
async def list_cd_scans(
    user_id: UserId,
    store: Store,
    limit: int = Query(default=50, ge=1, le=200),
) -> SessionListResponse:
    """List the caller's sessions, newest first."""
    sessions = await store.list_sessions(user_id, limit=limit)
    return SessionListResponse(
        sessions=[SessionSummary.from_session(s) for s in sessions],
        total=len(sessions),
    )


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return version and provider availability.

    The service is ``degraded`` when the vision model or the catalog has
    no credentials configured.
    """
    providers: list[ProviderStatus] = list(getattr(request.app.state, "provider_list", []))
    status = "healthy" if all(p.available for p in providers) else "degraded"
    pipeline: CDScanPipeline | None = getattr(request.app.state, "pipeline", None)
    return HealthResponse(
        status=status,
        version=request.app.version,
        pipeline_version=pipeline.version if pipeline else "unknown",
        providers=providers,
    )
