from typing import Optional

from schemas import StoredTask, TaskRecord


class FakeTaskRepository:
    """
    In-memory TaskRepository for controller tests.

    Records every call so tests can assert what the pages asked storage
    to do (and what they didn't).
    """

    def __init__(self):
        self.rows: dict[int, StoredTask] = {}
        self.next_id = 1
        self.calls: list[tuple] = []

    def add(self, title: str, description: str = "Some description", complete: int = 0) -> int:
        return self.insert(TaskRecord(task_title=title, task_description=description, complete=complete))

    def fetch_page(self, limit: int, offset: int) -> list[StoredTask]:
        self.calls.append(("fetch_page", limit, offset))
        ordered = sorted(self.rows.values(), key=lambda t: t.id)
        return ordered[offset:offset + limit]

    def find_by_id(self, task_id: int) -> Optional[StoredTask]:
        self.calls.append(("find_by_id", task_id))
        return self.rows.get(task_id)

    def count_all(self) -> int:
        return len(self.rows)

    def insert(self, record: TaskRecord) -> int:
        self.calls.append(("insert", record))
        task_id = self.next_id
        self.next_id += 1
        self.rows[task_id] = StoredTask(id=task_id, **record.model_dump())
        return task_id

    def update(self, task_id: int, record: TaskRecord) -> bool:
        self.calls.append(("update", task_id, record))
        if task_id not in self.rows:
            return False
        self.rows[task_id] = StoredTask(id=task_id, **record.model_dump())
        return True

    def delete(self, task_id: int) -> bool:
        self.calls.append(("delete", task_id))
        return self.rows.pop(task_id, None) is not None

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]
