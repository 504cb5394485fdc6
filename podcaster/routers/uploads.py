"""Upload task routes."""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from ..core.dependencies import get_upload_registry
from ..core.session import AuthSession
from ..middleware.auth import get_current_session
from ..schemas.upload import UploadTaskResponse
from ..services.upload_tasks import TaskRemoved, UploadTaskRegistry

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("", response_model=List[UploadTaskResponse])
async def list_uploads(
    session: AuthSession = Depends(get_current_session),
    registry: UploadTaskRegistry = Depends(get_upload_registry),
):
    """The caller's upload tasks in submission order."""
    return [UploadTaskResponse.model_validate(task) for task in registry.list(session.user_id)]


@router.get("/{task_id}", response_model=UploadTaskResponse)
async def get_upload(
    task_id: str,
    session: AuthSession = Depends(get_current_session),
    registry: UploadTaskRegistry = Depends(get_upload_registry),
):
    task = registry.get(session.user_id, task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Upload not found")
    return UploadTaskResponse.model_validate(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_upload(
    task_id: str,
    session: AuthSession = Depends(get_current_session),
    registry: UploadTaskRegistry = Depends(get_upload_registry),
):
    """
    Hide a task from the list.
    A transfer still in flight keeps running.
    """
    if registry.get(session.user_id, task_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Upload not found")
    registry.dispatch(session.user_id, TaskRemoved(task_id))
