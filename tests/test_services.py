from datetime import date, datetime, timedelta

import pytest

from simpletodo.errors import NotFoundError, ValidationError


class TestCreateTodo:
    def test_defaults(self, service):
        todo = service.create_todo("Buy milk")
        assert todo.id > 0
        assert todo.title == "Buy milk"
        assert todo.description is None
        assert todo.deadline is None
        assert todo.completed is False
        assert todo.completed_at is None
        assert isinstance(todo.created_at, datetime)
        assert todo.subtasks == []
        assert todo.subtask_total == 0
        assert todo.progress == 0.0
        assert todo.has_checklist is False

    def test_timestamps_are_utc(self, service):
        todo = service.create_todo("Clock")
        assert todo.created_at.utcoffset() == timedelta(0)
        assert todo.updated_at == todo.created_at
        done = service.toggle_todo_complete(todo.id)
        assert done.completed_at.utcoffset() == timedelta(0)

    def test_strips_and_normalizes_fields(self, service):
        todo = service.create_todo("  Pay bills  ", description="   ", deadline="2099-12-25")
        assert todo.title == "Pay bills"
        assert todo.description is None
        assert todo.deadline == datetime(2099, 12, 25, 0, 0)

    def test_accepts_date_and_datetime_deadlines(self, service):
        assert service.create_todo("a", deadline=date(2030, 1, 2)).deadline == datetime(2030, 1, 2)
        when = datetime(2030, 1, 2, 13, 45)
        assert service.create_todo("b", deadline=when).deadline == when
        assert service.create_todo("c", deadline="2030-01-02T13:45:00").deadline == when

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_empty_title_rejected_and_nothing_persisted(self, service, title):
        with pytest.raises(ValidationError):
            service.create_todo(title)
        assert service.list_todos() == []

    def test_too_long_title_rejected(self, service):
        with pytest.raises(ValidationError):
            service.create_todo("x" * 201)
        assert service.list_todos() == []

    def test_bad_deadline_rejected_and_nothing_persisted(self, service):
        with pytest.raises(ValidationError):
            service.create_todo("Title", deadline="next tuesday")
        assert service.list_todos() == []


class TestUpdateTodo:
    def test_replaces_editable_fields(self, service):
        todo = service.create_todo("Old", description="desc", deadline="2030-01-01")
        updated = service.update_todo(todo.id, "New", description=None, deadline=None)
        assert updated.id == todo.id
        assert updated.title == "New"
        assert updated.description is None
        assert updated.deadline is None
        assert updated.created_at == todo.created_at
        assert updated.updated_at >= todo.updated_at

    def test_keeps_completion_and_subtasks(self, service):
        todo = service.create_todo("Trip")
        service.add_subtask(todo.id, "Tickets")
        service.toggle_todo_complete(todo.id)
        updated = service.update_todo(todo.id, "Trip to Rome")
        assert updated.completed is True
        assert [s.label for s in updated.subtasks] == ["Tickets"]

    def test_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            service.update_todo(9999, "Nope")

    def test_empty_title_leaves_todo_untouched(self, service):
        todo = service.create_todo("Keep me")
        with pytest.raises(ValidationError):
            service.update_todo(todo.id, " ")
        assert service.get_todo(todo.id).title == "Keep me"


class TestToggleTodo:
    def test_toggle_back_and_forth(self, service):
        todo = service.create_todo("Flip")
        done = service.toggle_todo_complete(todo.id)
        assert done.completed is True
        assert done.completed_at is not None
        reopened = service.toggle_todo_complete(todo.id)
        assert reopened.completed is False
        assert reopened.completed_at is None

    def test_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            service.toggle_todo_complete(9999)


class TestDeleteTodo:
    def test_delete_then_get_fails(self, service):
        todo = service.create_todo("X")
        service.delete_todo(todo.id)
        with pytest.raises(NotFoundError):
            service.get_todo(todo.id)

    def test_cascades_to_subtasks(self, service):
        todo = service.create_todo("Parent")
        subtasks = [service.add_subtask(todo.id, label) for label in ("a", "b", "c")]
        other = service.create_todo("Other")
        survivor = service.add_subtask(other.id, "stays")

        service.delete_todo(todo.id)

        for subtask in subtasks:
            with pytest.raises(NotFoundError):
                service.get_subtask(subtask.id)
            with pytest.raises(NotFoundError):
                service.toggle_subtask(subtask.id)
        assert service.get_subtask(survivor.id).label == "stays"

    def test_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            service.delete_todo(9999)


class TestSubtasks:
    def test_order_appends_after_max(self, service):
        todo = service.create_todo("Groceries")
        first = service.add_subtask(todo.id, "eggs")
        second = service.add_subtask(todo.id, "bread")
        assert (first.order, second.order) == (0, 1)
        assert first.todo_id == todo.id
        assert first.completed is False

        service.delete_subtask(first.id)
        third = service.add_subtask(todo.id, "butter")
        assert third.order == 2

    def test_order_is_per_todo(self, service):
        a = service.create_todo("A")
        b = service.create_todo("B")
        service.add_subtask(a.id, "a1")
        service.add_subtask(a.id, "a2")
        assert service.add_subtask(b.id, "b1").order == 0

    def test_order_restarts_after_emptying_checklist(self, service):
        todo = service.create_todo("Reset")
        only = service.add_subtask(todo.id, "one")
        service.delete_subtask(only.id)
        assert service.add_subtask(todo.id, "again").order == 0

    def test_label_is_stripped(self, service):
        todo = service.create_todo("Labels")
        assert service.add_subtask(todo.id, "  skim  ").label == "skim"

    @pytest.mark.parametrize("label", ["", "  ", None])
    def test_empty_label_rejected(self, service, label):
        todo = service.create_todo("Labels")
        with pytest.raises(ValidationError):
            service.add_subtask(todo.id, label)
        assert service.get_todo(todo.id).subtasks == []

    def test_add_to_unknown_todo_persists_nothing(self, service):
        with pytest.raises(NotFoundError):
            service.add_subtask(9999, "orphan")
        todo = service.create_todo("Real")
        assert service.add_subtask(todo.id, "first").order == 0
        assert service.get_todo(todo.id).subtask_total == 1

    def test_double_toggle_restores_state(self, service):
        todo = service.create_todo("Toggle")
        subtask = service.add_subtask(todo.id, "item")
        once = service.toggle_subtask(subtask.id)
        assert once.completed is not subtask.completed
        twice = service.toggle_subtask(subtask.id)
        assert twice.completed is subtask.completed

    def test_toggle_and_delete_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.toggle_subtask(9999)
        with pytest.raises(NotFoundError):
            service.delete_subtask(9999)
        with pytest.raises(NotFoundError):
            service.get_subtask(9999)

    def test_delete_subtask(self, service):
        todo = service.create_todo("Trim")
        keep = service.add_subtask(todo.id, "keep")
        drop = service.add_subtask(todo.id, "drop")
        service.delete_subtask(drop.id)
        assert [s.id for s in service.get_todo(todo.id).subtasks] == [keep.id]
        with pytest.raises(NotFoundError):
            service.delete_subtask(drop.id)


class TestProgressAndListing:
    def test_buy_milk_scenario(self, service):
        todo = service.create_todo("Buy milk")
        first = service.add_subtask(todo.id, "2%")
        service.add_subtask(todo.id, "skim")
        service.toggle_subtask(first.id)

        todos = service.list_todos()
        assert len(todos) == 1
        listed = todos[0]
        assert listed.progress == 0.5
        assert listed.progress_percent == 50
        assert (listed.subtask_done, listed.subtask_total) == (1, 2)
        assert [s.label for s in listed.subtasks] == ["2%", "skim"]
        assert [s.completed for s in listed.subtasks] == [True, False]

    def test_progress_matches_ratio(self, service):
        todo = service.create_todo("Ratio")
        subtasks = [service.add_subtask(todo.id, str(i)) for i in range(3)]
        for done, subtask in enumerate(subtasks, start=1):
            service.toggle_subtask(subtask.id)
            fetched = service.get_todo(todo.id)
            assert fetched.progress == pytest.approx(done / 3)
            assert fetched.progress_percent == (done * 100) // 3

    def test_no_checklist_means_zero_progress(self, service):
        todo = service.create_todo("Nothing to check")
        fetched = service.get_todo(todo.id)
        assert fetched.subtask_total == 0
        assert fetched.progress == 0.0
        assert fetched.progress_percent == 0

    def test_list_is_oldest_first(self, service):
        ids = [service.create_todo(f"Task {i}").id for i in range(5)]
        listed = service.list_todos()
        assert [t.id for t in listed] == ids
        created = [t.created_at for t in listed]
        assert created == sorted(created)

    def test_list_groups_subtasks_by_todo(self, service):
        a = service.create_todo("A")
        b = service.create_todo("B")
        service.add_subtask(b.id, "b1")
        service.add_subtask(a.id, "a1")
        service.add_subtask(b.id, "b2")
        by_title = {t.title: [s.label for s in t.subtasks] for t in service.list_todos()}
        assert by_title == {"A": ["a1"], "B": ["b1", "b2"]}

    def test_get_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.get_todo(424242)
