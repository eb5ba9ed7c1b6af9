"""
API Routes
==========

REST API endpoints for organizing dropped items, browsing the operation
history and undoing operations.

Author: AutoDrop Project
License: MIT
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from ..core.errors import AutoDropError, FileOperationError, ValidationError
from ..core.models import BatchOperationResult, DuplicateHandling, OperationHistoryItem
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global orchestrator reference (set by app.py)
_orchestrator = None


def set_orchestrator(orchestrator):
    """Set orchestrator instance for routes."""
    global _orchestrator
    _orchestrator = orchestrator


def get_orchestrator():
    """Get orchestrator instance."""
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not initialized")
    return _orchestrator


api_router = APIRouter()


# ============================================================================
# Pydantic Models for API Requests/Responses
# ============================================================================

class OrganizeRequest(BaseModel):
    """Organize request model."""
    paths: List[str] = Field(..., min_length=1)
    duplicate_handling: Optional[DuplicateHandling] = None
    destination_overrides: Dict[str, str] = Field(default_factory=dict)


class UndoManyRequest(BaseModel):
    """Bulk undo request."""
    ids: List[str] = Field(..., min_length=1)


class StatusResponse(BaseModel):
    """System status response."""
    status: str
    history_count: int
    undoable_count: int
    pending_undo: int
    pending_undo_description: Optional[str] = None
    duplicate_detection: bool


def serialize_history_item(item: OperationHistoryItem) -> Dict[str, Any]:
    data = item.model_dump(mode="json")
    data["can_undo"] = item.can_undo
    return data


def serialize_batch_result(result: BatchOperationResult) -> Dict[str, Any]:
    return {
        "success": result.is_full_success,
        "message": result.get_summary_message(),
        "total_items": result.total_items,
        "success_count": result.success_count,
        "failed_count": result.failed_count,
        "skipped_count": result.skipped_count,
        "destination_count": result.destination_count,
        "errors": [asdict(error) for error in result.errors],
        "operations": [
            {
                "id": operation.id,
                "item_name": operation.item_name,
                "source_path": operation.source_path,
                "destination_path": operation.destination_path,
            }
            for operation in result.operations
        ],
    }


# ============================================================================
# Organize Routes
# ============================================================================

@api_router.post("/organize")
async def organize(request: OrganizeRequest):
    """
    Organize dropped paths into their suggested destinations.

    Ask-policy duplicates are reported as failed items, since the API has
    no one to ask.
    """
    orchestrator = get_orchestrator()

    try:
        result = await orchestrator.organize(
            request.paths,
            duplicate_handling=request.duplicate_handling,
            destination_overrides=request.destination_overrides or None
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AutoDropError as e:
        logger.error(f"Organize failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    return serialize_batch_result(result)


# ============================================================================
# History Routes
# ============================================================================

@api_router.get("/history")
async def get_history(limit: int = 20):
    """
    Get the most recent operations, newest first.

    Args:
        limit: Maximum number of entries
    """
    orchestrator = get_orchestrator()
    items = await orchestrator.journal.get_recent(limit)
    return {
        "items": [serialize_history_item(item) for item in items],
        "total": orchestrator.journal.total_count,
        "limit": limit
    }


@api_router.get("/history/undoable")
async def get_undoable_history():
    """Get the operations that can still be undone."""
    orchestrator = get_orchestrator()
    items = await orchestrator.journal.get_undoable()
    return {"items": [serialize_history_item(item) for item in items]}


@api_router.post("/history/undo")
async def undo_many(request: UndoManyRequest):
    """Undo several history entries independently."""
    orchestrator = get_orchestrator()
    succeeded, failed = await orchestrator.journal.undo_multiple(request.ids)
    return {"succeeded": succeeded, "failed": failed}


@api_router.post("/history/{operation_id}/undo")
async def undo_operation(operation_id: str):
    """
    Undo one history entry.

    Args:
        operation_id: Entry id
    """
    orchestrator = get_orchestrator()

    item = await orchestrator.journal.get(operation_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Operation not found: {operation_id}"
        )

    try:
        undone = await orchestrator.journal.undo(operation_id)
    except FileOperationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not undone:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Operation cannot be undone: {item.item_name}"
        )

    item = await orchestrator.journal.get(operation_id)
    return {"success": True, "item": serialize_history_item(item)}


@api_router.delete("/history")
async def clear_history():
    """Remove every history entry."""
    orchestrator = get_orchestrator()
    await orchestrator.journal.clear()
    return {"success": True, "message": "History cleared"}


# ============================================================================
# One-click Undo Routes
# ============================================================================

@api_router.get("/undo")
async def get_pending_undo():
    """Describe the pending one-click undo, if any."""
    orchestrator = get_orchestrator()
    return {
        "can_undo": orchestrator.undo.can_undo,
        "pending_count": orchestrator.undo.pending_count,
        "description": orchestrator.undo.current_description
    }


@api_router.post("/undo")
async def execute_pending_undo():
    """Run the pending one-click undo."""
    orchestrator = get_orchestrator()

    if not orchestrator.undo.can_undo:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Nothing to undo"
        )

    success = await orchestrator.undo_last_batch()
    return {"success": success}


# ============================================================================
# Status Routes
# ============================================================================

@api_router.get("/status", response_model=StatusResponse)
async def get_status():
    """Get orchestrator status."""
    orchestrator = get_orchestrator()
    info = orchestrator.get_status()

    return StatusResponse(
        status="ready" if info["initialized"] else "starting",
        history_count=info["history_count"],
        undoable_count=info["undoable_count"],
        pending_undo=info["pending_undo"],
        pending_undo_description=info["pending_undo_description"],
        duplicate_detection=info["duplicate_detection"]
    )
