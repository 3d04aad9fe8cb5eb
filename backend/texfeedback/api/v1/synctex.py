import os

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from texfeedback.api.schemas.schemas import (
    ForwardSyncResponse,
    InverseSyncResponse,
    LineMapEntryResponse,
    LineMapResponse,
)
from texfeedback.core.synctex.navigator import SyncNavigator
from texfeedback.dependencies import get_navigator
from texfeedback.services import feedback_service

router = APIRouter(prefix="/synctex", tags=["synctex"])


def _validate_source_path(file: str) -> str:
    """Only absolute paths are accepted; relative ones would depend on the server's cwd."""
    if not file:
        raise HTTPException(status_code=400, detail="Invalid file path")
    if not os.path.isabs(file):
        raise HTTPException(status_code=400, detail="File path must be absolute")
    return file


@router.get("/forward", response_model=ForwardSyncResponse)
async def forward_sync(
    file: str = Query(...),
    line: int = Query(..., ge=1),
    navigator: SyncNavigator = Depends(get_navigator),
):
    """Source line → PDF position."""
    source_path = _validate_source_path(file)
    result = await feedback_service.forward_sync(navigator, source_path, line)
    if result is None:
        raise HTTPException(status_code=404, detail="No SyncTeX data for this location")
    return ForwardSyncResponse.model_validate(result)


@router.get("/inverse", response_model=InverseSyncResponse)
async def inverse_sync(
    file: str = Query(...),
    page: int = Query(..., ge=1),
    x: float = Query(...),
    y: float = Query(...),
    navigator: SyncNavigator = Depends(get_navigator),
):
    """PDF position → source line."""
    source_path = _validate_source_path(file)
    result = await feedback_service.inverse_sync(navigator, source_path, page, x, y)
    if result is None:
        raise HTTPException(status_code=404, detail="No SyncTeX data for this location")
    return InverseSyncResponse.model_validate(result)


@router.get("/linemap", response_model=LineMapResponse)
async def line_map(
    file: str = Query(...),
    navigator: SyncNavigator = Depends(get_navigator),
):
    """Every recorded source line with its page and vertical position."""
    source_path = _validate_source_path(file)
    entries = await feedback_service.build_line_map(navigator, source_path)
    return LineMapResponse(line_map=[LineMapEntryResponse.model_validate(e) for e in entries])


@router.delete("/cache", status_code=204)
async def clear_cache(navigator: SyncNavigator = Depends(get_navigator)):
    """Called by the compile orchestrator whenever a new compilation starts."""
    feedback_service.compilation_started(navigator)
    return Response(status_code=204)
