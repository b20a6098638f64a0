import asyncio
import logging
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    UploadFile,
    WebSocket,
    status,
)
from sqlalchemy.orm import Session

from ...core.config import settings
from ...db.session import SessionLocal
from ...models.task import Task, TaskStatus
from ...models.user import User
from ...schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskOut,
    TaskDetailOut,
    RejectIn,
    HistoryOut,
)
from ...services import task_service
from ...services.realtime import broker, Subscription
from ..deps import get_db, get_current_user, get_current_parent, user_from_token

logger = logging.getLogger(__name__)

router = APIRouter()


def _as_http(e: Exception) -> HTTPException:
    if isinstance(e, PermissionError):
        return HTTPException(status.HTTP_403_FORBIDDEN, str(e))
    return HTTPException(status.HTTP_400_BAD_REQUEST, str(e))


def _load_task(db: Session, task_id: str, current: User) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    # family members and the assignee (even after switching family) can see it
    if task.family_id != current.family_id and task.assigned_to_id != current.id:
        raise HTTPException(403, "You are not a member of this family")
    return task


# ------------------------------------------------------------------------
#  Create a task for a child of the caller's family
# ------------------------------------------------------------------------
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Family Task",
    description="""
    Create a new task and assign it to a child of the parent's family.

    **Who can use it:**
    Parents only.

    **Body Parameters:**
    - `title`: Task title (required)
    - `assigned_to_id`: the child who should do it (required)
    - `description`, `priority`, `due_date` (optional)
    - `reward`: `stars`, `money` and `screen_time` minutes, all non-negative
    """,
)
def create_family_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_parent),
):
    try:
        return task_service.create_task(
            db,
            creator=current,
            title=payload.title,
            assigned_to_id=payload.assigned_to_id,
            description=payload.description,
            priority=payload.priority,
            due_date=payload.due_date,
            reward=payload.reward.model_dump(),
        )
    except (PermissionError, ValueError) as e:
        raise _as_http(e)


# ------------------------------------------------------------------------
# Tasks assigned to the current user
# ------------------------------------------------------------------------
@router.get("/me", response_model=List[TaskDetailOut])
def my_tasks(
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    return task_service.list_tasks_for_user(db, user_id=current.id)


# ------------------------------------------------------------------------
# Completed tasks waiting for a parent's decision
# ------------------------------------------------------------------------
@router.get("/review", response_model=List[TaskDetailOut])
def review_queue(
    db: Session = Depends(get_db),
    current: User = Depends(get_current_parent),
):
    return task_service.list_review_queue(db, family_id=current.family_id)


@router.get("/family", response_model=List[TaskOut])
def family_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current: User = Depends(get_current_parent),
):
    return task_service.list_tasks_for_family(db, family_id=current.family_id, status=status_filter)


# ------------------------------------------------------------------------
# Change feed: pushes an event on every insert/update of a visible task
# ------------------------------------------------------------------------
async def _pump(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        event = await sub.queue.get()
        await websocket.send_json(event)


async def _drain(websocket: WebSocket) -> None:
    # incoming messages are ignored; we only watch for the client leaving
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def task_changes(websocket: WebSocket, token: str = Query(...)):
    db = SessionLocal()
    try:
        user = user_from_token(db, token)
        sub = broker.subscribe(user)
    except HTTPException as e:
        logger.info(f"Rejected change feed connection: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        db.close()

    try:
        await websocket.accept()
        await websocket.send_json({"event": "SUBSCRIBED"})
        pump = asyncio.create_task(_pump(websocket, sub))
        drain = asyncio.create_task(_drain(websocket))
        done, pending = await asyncio.wait({pump, drain}, return_when=asyncio.FIRST_COMPLETED)
        for t in pending:
            t.cancel()
        for t in done:
            if not t.cancelled() and t.exception() is not None:
                logger.debug(f"Change feed for {sub.user_id} ended: {t.exception()!r}")
    finally:
        broker.unsubscribe(sub)


# ------------------------------------------------------------------------
# Single task
# ------------------------------------------------------------------------
@router.get("/{task_id}", response_model=TaskDetailOut)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    return _load_task(db, task_id, current)


@router.patch("/{task_id}", response_model=TaskOut)
def edit_task(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    _load_task(db, task_id, current)
    try:
        t = task_service.update_task(
            db,
            task_id=task_id,
            editor=current,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            due_date=payload.due_date,
            reward=payload.reward.model_dump() if payload.reward else None,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not t:
        raise HTTPException(403, "You cannot edit this task")
    return t


@router.get("/{task_id}/history", response_model=List[HistoryOut])
def get_history(
    task_id: str,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    _load_task(db, task_id, current)
    return task_service.task_history(db, task_id=task_id)


# ------------------------------------------------------------------------
# Workflow: start -> complete -> confirm | reject
# ------------------------------------------------------------------------
@router.post("/{task_id}/start", response_model=TaskOut)
def start(
    task_id: str,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    task = _load_task(db, task_id, current)
    try:
        return task_service.start_task(db, task=task, actor=current)
    except (PermissionError, ValueError) as e:
        raise _as_http(e)


@router.post("/{task_id}/complete", response_model=TaskOut)
def complete(
    task_id: str,
    proof: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    task = _load_task(db, task_id, current)
    contents = None
    if proof is not None and proof.filename:
        # one byte over the limit is enough to refuse the upload
        contents = proof.file.read(settings.MAX_PROOF_BYTES + 1)
    try:
        return task_service.complete_task(
            db,
            task=task,
            actor=current,
            proof=contents,
            proof_filename=proof.filename if contents is not None else None,
            proof_content_type=proof.content_type if contents is not None else None,
        )
    except (PermissionError, ValueError) as e:
        raise _as_http(e)
    except OSError as e:
        logger.error(f"Failed to store proof for task {task_id}: {e}", exc_info=True)
        raise HTTPException(500, f"Failed to save file: {str(e)}")


@router.post("/{task_id}/confirm", response_model=TaskOut)
def confirm(
    task_id: str,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    task = _load_task(db, task_id, current)
    try:
        return task_service.confirm_task(db, task=task, actor=current)
    except (PermissionError, ValueError) as e:
        raise _as_http(e)


@router.post("/{task_id}/reject", response_model=TaskOut)
def reject(
    task_id: str,
    payload: RejectIn,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    task = _load_task(db, task_id, current)
    try:
        return task_service.reject_task(db, task=task, actor=current, reason=payload.reason)
    except (PermissionError, ValueError) as e:
        raise _as_http(e)
