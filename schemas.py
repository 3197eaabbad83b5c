from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TaskRecord(BaseModel):
    """Task fields in their stored form, ready to be written"""
    task_title: str = Field(..., max_length=255)
    task_description: str
    complete: Literal[0, 1] = 0


class StoredTask(TaskRecord):
    """A task row as read back from storage"""
    id: int

    model_config = ConfigDict(from_attributes=True)
