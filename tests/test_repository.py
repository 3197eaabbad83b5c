from schemas import TaskRecord


def make_record(title="Task", description="Description", complete=0):
    return TaskRecord(task_title=title, task_description=description, complete=complete)


def test_insert_returns_new_ids(repo):
    first = repo.insert(make_record("First"))
    second = repo.insert(make_record("Second"))

    assert first > 0
    assert second > first


def test_find_by_id(repo):
    task_id = repo.insert(make_record("Buy milk", "2%", 0))

    task = repo.find_by_id(task_id)

    assert task is not None
    assert task.id == task_id
    assert task.task_title == "Buy milk"
    assert task.task_description == "2%"
    assert task.complete == 0


def test_find_by_id_not_found(repo):
    assert repo.find_by_id(9999) is None


def test_fetch_page_orders_by_id_and_respects_limit(repo):
    ids = [repo.insert(make_record(f"Task {i}")) for i in range(7)]

    page = repo.fetch_page(limit=3, offset=2)

    assert [task.id for task in page] == ids[2:5]


def test_fetch_page_offset_beyond_total_is_empty(repo):
    for i in range(3):
        repo.insert(make_record(f"Task {i}"))

    assert repo.fetch_page(limit=10, offset=3) == []
    assert repo.fetch_page(limit=10, offset=500) == []


def test_count_matches_rows_across_pages(repo):
    for i in range(12):
        repo.insert(make_record(f"Task {i}"))

    seen = []
    for offset in range(0, 12, 4):
        seen.extend(repo.fetch_page(limit=4, offset=offset))

    assert repo.count_all() == 12
    assert len(seen) == 12
    assert len({task.id for task in seen}) == 12


def test_update_overwrites_all_fields(repo):
    task_id = repo.insert(make_record("Original", "Original description", 0))

    assert repo.update(task_id, make_record("Updated", "New description", 1)) is True

    task = repo.find_by_id(task_id)
    assert task.task_title == "Updated"
    assert task.task_description == "New description"
    assert task.complete == 1


def test_update_not_found(repo):
    assert repo.update(9999, make_record()) is False
    assert repo.count_all() == 0


def test_delete(repo):
    task_id = repo.insert(make_record("To delete"))

    assert repo.delete(task_id) is True
    assert repo.find_by_id(task_id) is None
    assert repo.count_all() == 0


def test_delete_not_found(repo):
    assert repo.delete(9999) is False


def test_deleted_ids_are_not_reused(repo):
    repo.insert(make_record("One"))
    last_id = repo.insert(make_record("Two"))
    repo.delete(last_id)

    assert repo.insert(make_record("Three")) > last_id


def test_ids_beyond_sql_integer_range_are_not_found(repo):
    huge_id = 10 ** 20

    assert repo.find_by_id(huge_id) is None
    assert repo.update(huge_id, make_record()) is False
    assert repo.delete(huge_id) is False


def test_fetch_page_with_huge_offset_is_empty(repo):
    repo.insert(make_record())

    assert repo.fetch_page(limit=10, offset=10 ** 20) == []
