import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..models.task import Task, TaskStatus, TaskPriority
from ..models.user import User, UserRole
from ..models.balance import UserBalance, TaskHistory
from ..models import utcnow
from . import storage
from .realtime import broker, INSERT, UPDATE

logger = logging.getLogger(__name__)

# no edits once the child has handed the task in
LOCKED_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CONFIRMED, TaskStatus.REJECTED})


class TaskTransitionError(ValueError):
    pass


class TaskLockedError(ValueError):
    pass


class InvalidAssigneeError(ValueError):
    pass


def _get_balance(db: Session, user_id: str) -> UserBalance:
    balance = db.execute(select(UserBalance).where(UserBalance.user_id == user_id)).scalar_one_or_none()
    if balance is None:
        balance = UserBalance(user_id=user_id, stars=0, money=0, screen_time=0)
        db.add(balance)
    return balance

def _require_assignee(task: Task, actor: User, action: str) -> None:
    if task.assigned_to_id != actor.id:
        raise PermissionError(f"Only the assigned child can {action} this task")

def _require_parent(task: Task, actor: User, action: str) -> None:
    if actor.role != UserRole.PARENT or actor.family_id != task.family_id:
        raise PermissionError(f"Only a parent of this family can {action} this task")

def _check_transition(task: Task, target: TaskStatus, action: str) -> None:
    if not task.can_move_to(target):
        raise TaskTransitionError(f"Cannot {action} a task that is {task.status.value}")

def _record(db: Session, task: Task, actor: User | None, from_status: TaskStatus | None, note: str | None = None) -> None:
    db.add(TaskHistory(
        task_id=task.id,
        actor_id=actor.id if actor else None,
        from_status=from_status,
        to_status=task.status,
        note=note,
    ))

def _move(db: Session, task: Task, target: TaskStatus, actor: User, note: str | None = None) -> Task:
    previous = task.status
    task.status = target
    _record(db, task, actor, previous, note)
    db.commit()
    db.refresh(task)
    logger.info(f"Task {task.id} {previous.value} -> {target.value} by {actor.id}")
    broker.publish(UPDATE, task)
    return task

def create_task(
    db: Session, *,
    creator: User,
    title: str,
    assigned_to_id: str,
    description: str | None = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: datetime | None = None,
    reward: dict | None = None,
) -> Task:
    if creator.role != UserRole.PARENT or not creator.family_id:
        raise PermissionError("Only parents can create tasks")
    title = (title or "").strip()
    if not title:
        raise ValueError("Title and assignee are required")
    assignee = db.get(User, assigned_to_id)
    if not assignee or assignee.family_id != creator.family_id:
        raise InvalidAssigneeError("Assignee is not in your family")
    if assignee.role != UserRole.CHILD:
        raise InvalidAssigneeError("Tasks can only be assigned to children")

    reward = reward or {}
    t = Task(
        family_id=creator.family_id,
        title=title,
        description=(description or "").strip() or None,
        priority=priority,
        assigned_to_id=assignee.id,
        assigned_by_id=creator.id,
        due_date=due_date,
        reward_stars=reward.get("stars", 0),
        reward_money=reward.get("money", 0),
        reward_screen_time=reward.get("screen_time", 0),
        status=TaskStatus.PENDING,
    )
    db.add(t)
    db.flush()
    _record(db, t, creator, None)
    db.commit()
    db.refresh(t)
    logger.info(f"Task {t.id} '{t.title}' created by {creator.id} for {assignee.id}")
    broker.publish(INSERT, t)
    return t

def update_task(
    db: Session,
    *,
    task_id: str,
    editor: User,
    title: Optional[str] = None,
    description: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    due_date: datetime | None = None,
    reward: Optional[dict] = None,
) -> Task | None:
    task = db.get(Task, task_id)
    if not task:
        return None
    # creator or any parent in the same family
    if editor.family_id != task.family_id:
        return None
    if not (task.assigned_by_id == editor.id or editor.role == UserRole.PARENT):
        return None

    if task.status in LOCKED_STATUSES:
        raise TaskLockedError("Task is locked after completion and cannot be edited.")

    if title is not None:
        title = title.strip()
        if not title:
            raise ValueError("Title cannot be empty")
        task.title = title
    if description is not None:
        task.description = description.strip() or None
    if priority is not None:
        task.priority = priority
    if due_date is not None:
        task.due_date = due_date
    if reward is not None:
        task.reward_stars = reward.get("stars", task.reward_stars)
        task.reward_money = reward.get("money", task.reward_money)
        task.reward_screen_time = reward.get("screen_time", task.reward_screen_time)

    db.commit()
    db.refresh(task)
    broker.publish(UPDATE, task)
    return task

def start_task(db: Session, *, task: Task, actor: User) -> Task:
    _require_assignee(task, actor, "start")
    _check_transition(task, TaskStatus.IN_PROGRESS, "start")
    task.started_at = utcnow()
    return _move(db, task, TaskStatus.IN_PROGRESS, actor)

def complete_task(
    db: Session, *,
    task: Task,
    actor: User,
    proof: bytes | None = None,
    proof_filename: str | None = None,
    proof_content_type: str | None = None,
) -> Task:
    """Hand a task in for review, optionally with a proof photo.

    The photo is stored before the status changes; when storing fails the
    task is left untouched, and when the status update fails the stored file
    is removed again.
    """
    _require_assignee(task, actor, "complete")
    _check_transition(task, TaskStatus.COMPLETED, "complete")

    proof_path = None
    proof_url = None
    if proof is not None:
        proof_path, proof_url = storage.save_proof(
            task.id, filename=proof_filename, content_type=proof_content_type, contents=proof
        )

    task.proof_url = proof_url
    task.rejection_reason = None
    task.completed_at = utcnow()
    try:
        return _move(db, task, TaskStatus.COMPLETED, actor, note=proof_url)
    except Exception:
        db.rollback()
        if proof_path is not None:
            storage.delete_proof(proof_path)
        raise

def confirm_task(db: Session, *, task: Task, actor: User) -> Task:
    _require_parent(task, actor, "confirm")
    _check_transition(task, TaskStatus.CONFIRMED, "confirm")
    task.confirmed_at = utcnow()

    balance = _get_balance(db, task.assigned_to_id)
    balance.stars += task.reward_stars
    balance.money = round(float(balance.money or 0) + float(task.reward_money or 0), 2)
    balance.screen_time += task.reward_screen_time
    return _move(db, task, TaskStatus.CONFIRMED, actor)

def reject_task(db: Session, *, task: Task, actor: User, reason: str) -> Task:
    _require_parent(task, actor, "reject")
    reason = (reason or "").strip()
    if not reason:
        raise ValueError("A rejection reason is required")
    _check_transition(task, TaskStatus.REJECTED, "reject")
    task.rejection_reason = reason
    return _move(db, task, TaskStatus.REJECTED, actor, note=reason)

def list_tasks_for_user(db: Session, *, user_id: str) -> list[Task]:
    stmt = (
        select(Task)
        .options(joinedload(Task.assigned_by), joinedload(Task.family))
        .where(Task.assigned_to_id == user_id)
        .order_by(Task.created_at.desc())
    )
    return list(db.execute(stmt).scalars())

def list_review_queue(db: Session, *, family_id: str) -> list[Task]:
    stmt = (
        select(Task)
        .options(joinedload(Task.assigned_to), joinedload(Task.assigned_by))
        .where(Task.family_id == family_id, Task.status == TaskStatus.COMPLETED)
        .order_by(Task.completed_at.desc())
    )
    return list(db.execute(stmt).scalars())

def list_tasks_for_family(db: Session, *, family_id: str, status: TaskStatus | None = None) -> list[Task]:
    stmt = select(Task).where(Task.family_id == family_id)
    if status is not None:
        stmt = stmt.where(Task.status == status)
    return list(db.execute(stmt.order_by(Task.created_at.desc())).scalars())

def task_history(db: Session, *, task_id: str) -> list[TaskHistory]:
    stmt = select(TaskHistory).where(TaskHistory.task_id == task_id).order_by(TaskHistory.created_at)
    return list(db.execute(stmt).scalars())
