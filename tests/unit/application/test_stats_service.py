from unittest.mock import Mock

import pytest

from src.maquiz.application.stats_service import StatsService
from src.maquiz.domain.errors import PersistenceError
from tests.drivers.factories import (
    attempt_with,
    make_attempt,
    make_detail,
    make_question,
)


@pytest.fixture
def store():
    return Mock()


@pytest.fixture
def questions():
    source = Mock()
    source.get_questions_by_ids.return_value = [
        make_question("Q1", text="What is SOLID?")
    ]
    return source


@pytest.fixture
def service(store, questions):
    return StatsService(store, questions, user_limit=50, team_limit=200)


def test_user_summary_reads_bounded_user_window(service, store):
    store.list_by_user.return_value = [make_attempt("ann", 3, 5)]

    summary = service.user_summary("user-1")

    store.list_by_user.assert_called_once_with("user-1", 50)
    assert summary.attempt_count == 1
    assert summary.average_percent == 60


def test_read_failure_is_surfaced_not_masked(service, store):
    store.list_all.side_effect = PersistenceError("list_all", RuntimeError("boom"))

    with pytest.raises(PersistenceError):
        service.leaderboard()
    with pytest.raises(PersistenceError):
        service.team_report()


def test_user_read_failure_is_surfaced(service, store):
    store.list_by_user.side_effect = PersistenceError(
        "list_by_user", RuntimeError("boom")
    )

    with pytest.raises(PersistenceError):
        service.user_report("user-1")


def test_hardest_questions_look_up_texts(service, store, questions):
    store.list_all.return_value = [
        attempt_with([make_detail("Q1", False)], minutes=i) for i in range(3)
    ]

    hardest = service.hardest_questions()

    store.list_all.assert_called_once_with(200)
    questions.get_questions_by_ids.assert_called_once_with(["Q1"])
    assert hardest[0].text == "What is SOLID?"


def test_text_lookup_skipped_without_details(service, store, questions):
    store.list_all.return_value = [make_attempt("ann", 3, 5)]

    assert service.hardest_questions() == []
    questions.get_questions_by_ids.assert_not_called()


def test_export_is_not_capped(service, store):
    attempts = []
    for run in range(3):
        details = [make_detail(f"Q{i}", ok=False) for i in range(8)]
        attempts.append(attempt_with(details, minutes=run))
    store.list_all.return_value = attempts

    assert len(service.hardest_questions()) == 5
    assert len(service.export_question_difficulty()) == 8


def test_team_report_reads_history_once(service, store):
    store.list_all.return_value = [
        make_attempt("ann", 4, 5, minutes=2),
        make_attempt("bob", 2, 5, minutes=1),
    ]

    report = service.team_report()

    assert store.list_all.call_count == 1
    assert report.attempt_count == 2
    assert [e.user_label for e in report.leaderboard] == ["ann", "bob"]
    assert [e.user_label for e in report.best_runs] == ["ann", "bob"]
    assert [p.percent for p in report.timeline] == [40, 80]


def test_user_report_bundles_views(service, store):
    store.list_by_user.return_value = [
        attempt_with([make_detail("Q1", True, "Web")], minutes=0),
        attempt_with([make_detail("Q1", False, "Web")], minutes=1),
    ]

    report = service.user_report("user-1")

    assert report.summary.attempt_count == 2
    assert report.summary.average_percent == 50
    assert [p.percent for p in report.timeline] == [100, 0]
    assert report.categories[0].category == "Web"
    assert report.categories[0].average_accuracy_percent == 50


def test_resets_delegate_to_store(service, store):
    service.reset_user_history("user-1")
    service.reset_user_label("bob@example.com")
    service.reset_all()

    store.delete_by_user.assert_called_once_with("user-1")
    store.delete_by_label.assert_called_once_with("bob@example.com")
    store.delete_all.assert_called_once_with()


def test_reset_failure_propagates(service, store):
    store.delete_all.side_effect = PersistenceError(
        "delete_all", RuntimeError("denied")
    )

    with pytest.raises(PersistenceError):
        service.reset_all()
