import logging

import pytest

from jira_metrics.core.errors import ConfigurationError
from jira_metrics.core.status import Status, StatusCollection, apply_status_category_mappings


def test_category_views_in_insertion_order(statuses):
    assert statuses.todo() == ["Backlog", "Ready"]
    assert statuses.in_progress() == ["In Progress", "Review"]
    assert statuses.done() == ["Done"]


def test_category_views_deduplicate_names_shared_across_issue_types():
    collection = StatusCollection(
        [
            Status("Doing", id=3, category_name="In Progress", type="Story"),
            Status("Doing", id=3, category_name="In Progress", type="Bug"),
        ]
    )
    assert collection.in_progress() == ["Doing"]
    assert len(collection.expand_statuses("Doing")) == 2


def test_including_and_excluding_accept_names_and_ids(statuses):
    assert statuses.todo(including="Review") == ["Backlog", "Ready", "Review"]
    assert statuses.todo(excluding=1) == ["Ready"]
    assert statuses.in_progress(including=[2], excluding=["Review"]) == ["In Progress", "Ready"]


def test_unknown_status_in_including_raises(statuses):
    with pytest.raises(ConfigurationError, match="Status not found: 'Nope'"):
        statuses.done(including="Nope")
    with pytest.raises(ConfigurationError, match="99"):
        statuses.done(excluding=[99])


def test_lookups(statuses):
    assert statuses.find_by_id(3).name == "In Progress"
    assert statuses.find_by_id(None) is None
    assert statuses.find_by_name("Done").id == 5
    assert statuses.find_by_name("Missing") is None
    assert statuses.category_for("Review") == "In Progress"
    assert statuses.category_for("Missing") is None
    assert len(statuses) == 5
    assert statuses.find_by_id(1) in statuses


def test_category_for_respects_issue_type():
    collection = StatusCollection(
        [
            Status("Verify", id=7, category_name="In Progress", type="Story"),
            Status("Verify", id=8, category_name="Done", type="Bug"),
        ]
    )
    assert collection.category_for("Verify", "Story") == "In Progress"
    assert collection.category_for("Verify", "Bug") == "Done"


def test_add_global_status_appends_new_and_ignores_duplicate(statuses):
    statuses.add(Status("Blocked", id=6, category_name="In Progress"))
    statuses.add(Status("Blocked", id=6, category_name="In Progress"))
    assert statuses.find_all_by_name("Blocked") == [Status("Blocked", id=6, category_name="In Progress")]


def test_add_global_status_with_other_category_raises(statuses):
    with pytest.raises(ConfigurationError, match="Redefining status category") as excinfo:
        statuses.add(Status("Review", id=4, category_name="Done"))
    message = str(excinfo.value)
    assert "'Done'" in message and "'In Progress'" in message


def test_project_scoped_status_with_same_category_is_a_noop():
    collection = StatusCollection([Status("Review", id=4, category_name="In Progress")])
    collection.add(Status("Review", id=40, category_name="In Progress", project_id=10))
    assert [s.id for s in collection] == [4]


def test_project_scoped_override_without_project_id_is_ambiguous():
    collection = StatusCollection([Status("Review", id=4, category_name="In Progress")])
    with pytest.raises(ConfigurationError, match="Ambiguous project id"):
        collection.add(Status("Review", id=40, category_name="Done", project_id=10))


def test_project_scoped_override_for_other_project_is_ignored(caplog):
    collection = StatusCollection([Status("Review", id=4, category_name="In Progress")], project_id=20)
    with caplog.at_level(logging.DEBUG, logger="jira_metrics.core.status"):
        collection.add(Status("Review", id=40, category_name="Done", project_id=10))
    assert collection.category_for("Review") == "In Progress"
    assert "belongs to project 10" in caplog.text


def test_project_scoped_override_for_active_project_replaces():
    collection = StatusCollection([Status("Review", id=4, category_name="In Progress")], project_id=10)
    collection.add(Status("Review", id=40, category_name="Done", project_id=10))
    assert collection.category_for("Review") == "Done"
    assert collection.find_by_id(4) is None
    assert len(collection) == 1


def test_delete_removes_only_that_status(statuses):
    review = statuses.find_by_name("Review")
    statuses.delete(review)
    assert "Review" not in statuses.names()
    assert len(statuses) == 4


def test_status_category_mappings_use_merge_rules(statuses):
    apply_status_category_mappings(statuses, [{"status": "Parked", "category": "To Do"}])
    assert "Parked" in statuses.todo()

    with pytest.raises(ConfigurationError):
        apply_status_category_mappings(statuses, [{"status": "Done", "category": "To Do"}])
    with pytest.raises(ConfigurationError, match="needs both status and category"):
        apply_status_category_mappings(statuses, [{"status": "Parked"}])
