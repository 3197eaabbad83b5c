from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from logger import logger
from schemas import StoredTask, TaskRecord

# Largest value a 64-bit SQL INTEGER column or LIMIT/OFFSET can hold
MAX_SQL_INTEGER = 2**63 - 1


class TaskRepository(Protocol):
    """Storage operations the task pages rely on"""

    def fetch_page(self, limit: int, offset: int) -> list[StoredTask]: ...

    def find_by_id(self, task_id: int) -> Optional[StoredTask]: ...

    def count_all(self) -> int: ...

    def insert(self, record: TaskRecord) -> int: ...

    def update(self, task_id: int, record: TaskRecord) -> bool: ...

    def delete(self, task_id: int) -> bool: ...


class SqlTaskRepository:
    """TaskRepository backed by the ``tasks`` table.

    Lookups return ``None`` and writes return ``False`` for a missing id,
    so callers decide how to present "not found". Database errors are
    logged, rolled back and re-raised.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get(self, task_id: int) -> Optional[models.Task]:
        if not 0 < task_id <= MAX_SQL_INTEGER:
            return None
        return self.db.query(models.Task).filter(models.Task.id == task_id).first()

    def fetch_page(self, limit: int, offset: int) -> list[StoredTask]:
        """Get one page of tasks ordered by id"""
        try:
            rows = (
                self.db.query(models.Task)
                .order_by(models.Task.id)
                .offset(min(max(offset, 0), MAX_SQL_INTEGER))
                .limit(min(max(limit, 0), MAX_SQL_INTEGER))
                .all()
            )
            return [StoredTask.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching tasks: {str(e)}")
            raise

    def find_by_id(self, task_id: int) -> Optional[StoredTask]:
        try:
            row = self._get(task_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching task {task_id}: {str(e)}")
            raise
        return StoredTask.model_validate(row) if row is not None else None

    def count_all(self) -> int:
        try:
            return self.db.query(models.Task).count()
        except SQLAlchemyError as e:
            logger.error(f"Error counting tasks: {str(e)}")
            raise

    def insert(self, record: TaskRecord) -> int:
        try:
            db_task = models.Task(**record.model_dump())
            self.db.add(db_task)
            self.db.commit()
            self.db.refresh(db_task)
            logger.info(f"Created task with ID: {db_task.id}")
            return db_task.id
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating task: {str(e)}")
            raise

    def update(self, task_id: int, record: TaskRecord) -> bool:
        """Overwrite every mutable field of an existing task"""
        try:
            db_task = self._get(task_id)
            if db_task is None:
                return False
            for key, value in record.model_dump().items():
                setattr(db_task, key, value)
            self.db.commit()
            logger.info(f"Updated task with ID: {task_id}")
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating task {task_id}: {str(e)}")
            raise

    def delete(self, task_id: int) -> bool:
        try:
            db_task = self._get(task_id)
            if db_task is None:
                return False
            self.db.delete(db_task)
            self.db.commit()
            logger.info(f"Deleted task with ID: {task_id}")
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting task {task_id}: {str(e)}")
            raise
