"""
Unit tests for core.permissions module.
Predicates are pure, so plain namespaces stand in for model instances.
"""
from types import SimpleNamespace

import pytest

from teamboard.core.errors import AuthorizationError
from teamboard.core.permissions import (
    can_delete_todo,
    can_edit_task,
    can_edit_todo,
    can_manage_project,
    can_manage_team,
    can_move_task,
    can_read_channel,
    can_toggle_todo,
    can_view_project,
    can_view_team,
    can_view_todo,
    require,
)

OWNER, MEMBER, STRANGER = "u-owner", "u-member", "u-stranger"


def _owned(by=OWNER):
    return SimpleNamespace(created_by_id=by)


class TestTeamsAndProjects:
    @pytest.mark.parametrize("check", [can_view_team, can_view_project])
    def test_view_requires_creator_or_member(self, check):
        res = _owned()
        assert check(OWNER, res, [])
        assert check(MEMBER, res, [MEMBER])
        assert not check(STRANGER, res, [MEMBER])

    @pytest.mark.parametrize("check", [can_manage_team, can_manage_project])
    def test_manage_is_creator_only(self, check):
        assert check(OWNER, _owned())
        assert not check(MEMBER, _owned())

    def test_ids_compare_by_value(self):
        import uuid
        uid = uuid.uuid4()
        assert can_manage_team(str(uid), _owned(uid))


class TestTasks:
    def test_only_assignees_move(self):
        assert can_move_task(MEMBER, [MEMBER])
        # project ownership does not grant moves
        assert not can_move_task(OWNER, [MEMBER])
        assert not can_move_task(MEMBER, [])

    def test_edit_by_task_or_project_creator(self):
        project = _owned(OWNER)
        task = _owned(MEMBER)
        assert can_edit_task(MEMBER, task, project)
        assert can_edit_task(OWNER, task, project)
        assert not can_edit_task(STRANGER, task, project)


class TestTodos:
    def test_assignee_can_view_and_toggle_but_not_edit(self):
        todo = _owned()
        assert can_view_todo(MEMBER, todo, [MEMBER])
        assert can_toggle_todo(MEMBER, todo, [MEMBER])
        assert not can_edit_todo(MEMBER, todo)
        assert not can_delete_todo(MEMBER, todo)

    def test_stranger_sees_nothing(self):
        assert not can_view_todo(STRANGER, _owned(), [MEMBER])

    def test_creator_can_do_everything(self):
        todo = _owned()
        assert can_view_todo(OWNER, todo, [])
        assert can_edit_todo(OWNER, todo)
        assert can_delete_todo(OWNER, todo)


class TestChannels:
    def test_general_channel_open(self):
        assert can_read_channel(STRANGER, None)

    def test_team_channel_members_only(self):
        team = _owned()
        assert can_read_channel(MEMBER, team, [MEMBER])
        assert not can_read_channel(STRANGER, team, [MEMBER])


def test_require_raises_forbidden():
    require(True)
    with pytest.raises(AuthorizationError) as exc:
        require(False, "nope")
    assert exc.value.status_code == 403
    assert exc.value.detail == {"code": "FORBIDDEN", "message": "nope"}
