from datetime import date, timedelta

import pytest

from errors import LockedDayError
from models import AppState
from service import StudyPlanService

from conftest import TODAY


@pytest.fixture
def service(make_task, make_session, make_plan, settings, clock, tmp_path):
    essay = make_task("Essay", hours=4)
    lab = make_task("Lab", hours=3, importance=True)
    state = AppState(
        tasks=[essay, lab],
        plans=[
            make_plan(date(2024, 1, 2), make_session(essay, hours=2)),
            make_plan(date(2024, 1, 3), make_session(lab, hours=1)),
            make_plan(TODAY + timedelta(days=1), make_session(essay, number=2, hours=1)),
        ],
        settings=settings,
    )
    return StudyPlanService(state, clock=clock, path=tmp_path / "plans.json")


def test_queries_use_the_clock(service):
    plan = service.state.plans[0]
    assert service.classify_session(plan.planned_tasks[0], plan.date.isoformat()) == "missed"
    assert len(service.collect_missed()) == 2
    assert service.compute_unscheduled_hours() == 3


def test_redistribute_uses_default_mode_and_collects(service):
    result = service.redistribute()
    assert result.mode == "enhanced"
    # Lab is important, so it is placed first on today.
    assert [(p.session.task_id, p.plan_date) for p in result.placements] == [("lab", TODAY), ("essay", TODAY)]
    assert service.collect_missed() == []
    assert service.compute_unscheduled_hours() == 3


def test_lock_blocks_redistribution_into_day(service):
    service.toggle_lock(TODAY + timedelta(days=1))
    service.state.settings.daily_available_hours = 1
    result = service.redistribute("legacy")
    assert all(p.plan_date != TODAY + timedelta(days=1) for p in result.placements)
    with pytest.raises(LockedDayError):
        service.skip(TODAY + timedelta(days=1), 2, "essay")


def test_session_operations_by_key(service):
    tomorrow = (TODAY + timedelta(days=1)).isoformat()
    assert service.reschedule(tomorrow, 2, "essay", "15:00").start_time == "15:00"
    assert service.mark_done(tomorrow, 2).done is True
    service.delete(tomorrow, 2, "essay")
    assert service.summary()["completed_sessions"] == 0


def test_save_and_load_round_trip(service, clock):
    service.toggle_lock(date(2024, 1, 3))
    service.save()
    reloaded = StudyPlanService.load(service.path, clock=clock)
    assert reloaded.state.model_dump() == service.state.model_dump()
    assert reloaded.state.plans[1].is_locked is True
