from __future__ import annotations
import logging
import os
import streamlit as st
import pandas as pd
from datetime import date

from calendar_import import parse_ics_bytes
from errors import PlannerError
from models import Settings, StudyPlan
from planner import day_hours, format_hours
from service import StudyPlanService
from status import MISSED, classify_session

logging.basicConfig(
    level=os.environ.get("STUDY_PLANNER_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="Study Plan", layout="wide")

STATUS_BADGE = {
    "completed": "✅ Completed",
    "skipped": "⏭️ Skipped",
    "missed": "⚠️ Missed",
    "overdue": "⏰ Overdue",
    "rescheduled": "🔁 Rescheduled",
    "scheduled": "🕒 Scheduled",
}


def _service() -> StudyPlanService:
    if "service" not in st.session_state:
        st.session_state["service"] = StudyPlanService.load()
    return st.session_state["service"]


def _queue_toast(message: str) -> None:
    st.session_state["_toast"] = message


def _flush_toast() -> None:
    message = st.session_state.pop("_toast", None)
    if message:
        st.toast(message)


def _run(action, success: str) -> None:
    service = _service()
    try:
        action()
    except PlannerError as exc:
        st.error(str(exc))
        return
    service.save()
    _queue_toast(success)
    st.rerun()


def render_missed_alert(service: StudyPlanService) -> None:
    missed = service.collect_missed()
    if not missed:
        return
    noun = "session" if len(missed) == 1 else "sessions"
    st.warning(f"You have {len(missed)} missed {noun} that need to be redistributed or skipped.")
    col_enhanced, col_legacy = st.columns(2)
    for col, mode, label in (
        (col_enhanced, "enhanced", "Enhanced redistribute"),
        (col_legacy, "legacy", "Legacy redistribute"),
    ):
        with col:
            if st.button(label, key=f"redistribute_{mode}", type="primary" if mode == "enhanced" else "secondary"):
                result = service.redistribute(mode)
                service.save()
                if result.unplaced:
                    st.session_state["_unplaced"] = [
                        f"{u.item.task.title} ({u.item.plan_date.isoformat()}): {u.error}"
                        for u in result.unplaced
                    ]
                _queue_toast(result.summary())
                st.rerun()
    st.caption("Enhanced: priority order with conflict detection. Legacy: first missed, first placed.")

    unplaced = st.session_state.pop("_unplaced", None)
    if unplaced:
        st.error("\n".join(unplaced))


def _session_rows(service: StudyPlanService, plan: StudyPlan) -> list[dict]:
    titles = {t.id: t.title for t in service.state.tasks}
    now = service.clock.now()
    return [
        {
            "#": s.session_number,
            "Task": titles.get(s.task_id, "(deleted task)"),
            "Time": f"{s.start_time} - {s.end_time}",
            "Duration": format_hours(s.allocated_hours),
            "Status": STATUS_BADGE[classify_session(s, plan.date, now)],
        }
        for s in plan.planned_tasks
    ]


def render_day(service: StudyPlanService, plan: StudyPlan, today: date) -> None:
    label = plan.date.strftime("%A, %Y-%m-%d")
    if plan.date == today:
        label += " (Today)"
    header, lock_col = st.columns([5, 1])
    with header:
        st.subheader(label)
        st.caption(f"{format_hours(day_hours(plan))} planned")
    with lock_col:
        lock_label = "🔒 Unlock" if plan.is_locked else "🔓 Lock"
        if st.button(lock_label, key=f"lock_{plan.date.isoformat()}"):
            _run(lambda: service.toggle_lock(plan.date), "Day lock updated.")

    if not plan.planned_tasks:
        st.info("No sessions on this day.")
        return
    st.dataframe(pd.DataFrame(_session_rows(service, plan)), hide_index=True, use_container_width=True)

    if plan.is_locked:
        st.caption("Day is locked; unlock it to edit sessions.")
        return

    titles = {t.id: t.title for t in service.state.tasks}
    options = {
        f"#{s.session_number} {titles.get(s.task_id, s.task_id)}": s
        for s in plan.planned_tasks
    }
    key = plan.date.isoformat()
    choice = st.selectbox("Session", list(options), key=f"pick_{key}")
    session = options[choice]
    is_missed = classify_session(session, plan.date, service.clock.now()) == MISSED

    done_col, skip_col, del_col, time_col, save_col = st.columns([1, 1, 1, 2, 1])
    with done_col:
        if st.button("Done", key=f"done_{key}", disabled=is_missed):
            _run(lambda: service.mark_done(plan.date, session.session_number, session.task_id),
                 "Session marked done.")
    with skip_col:
        if st.button("Skip", key=f"skip_{key}"):
            _run(lambda: service.skip(plan.date, session.session_number, session.task_id),
                 "Session skipped.")
    with del_col:
        if st.button("Delete", key=f"delete_{key}"):
            _run(lambda: service.delete(plan.date, session.session_number, session.task_id),
                 "Session deleted.")
    with time_col:
        new_start = st.text_input("New start (HH:MM)", value=session.start_time, key=f"start_{key}")
    with save_col:
        if st.button("Reschedule", key=f"reschedule_{key}", disabled=is_missed):
            _run(lambda: service.reschedule(plan.date, session.session_number, session.task_id, new_start),
                 "Session rescheduled.")


def render_summary(service: StudyPlanService) -> None:
    summary = service.summary()
    m1, m2, m3 = st.columns(3)
    m1.metric("Total sessions", summary["total_sessions"])
    m2.metric("Total study time", format_hours(summary["total_hours"]))
    m3.metric("Completed sessions", summary["completed_sessions"])
    if summary["unscheduled_hours"] > 0:
        st.warning(
            f"{format_hours(summary['unscheduled_hours'])} of work couldn't be scheduled. "
            "Consider adjusting your settings or deadlines."
        )


def render_sidebar(service: StudyPlanService) -> None:
    settings = service.state.settings
    st.sidebar.header("Settings")
    with st.sidebar.form("settings_form"):
        hours = st.number_input("Daily study hours", 0.5, 24.0, float(settings.daily_available_hours), 0.5)
        window_start = st.text_input("Study window start", settings.study_window_start)
        window_end = st.text_input("Study window end", settings.study_window_end)
        buffer = st.number_input("Buffer between sessions (m)", 0, 120, settings.buffer_minutes, 5)
        min_minutes = st.number_input("Shortest session (m)", 1, 240, settings.min_session_minutes, 5)
        horizon = st.number_input("Redistribution horizon (days)", 1, 365, settings.redistribution_horizon_days)
        mode = st.selectbox("Default mode", ["enhanced", "legacy"],
                            index=0 if settings.default_redistribution_mode == "enhanced" else 1)
        if st.form_submit_button("Save settings"):
            try:
                service.state.settings = Settings(
                    daily_available_hours=hours,
                    rest_days=settings.rest_days,
                    study_window_start=window_start,
                    study_window_end=window_end,
                    buffer_minutes=int(buffer),
                    min_session_minutes=int(min_minutes),
                    redistribution_horizon_days=int(horizon),
                    default_redistribution_mode=mode,
                )
            except ValueError as exc:
                st.sidebar.error(str(exc))
            else:
                service.save()
                _queue_toast("Settings saved.")

    st.sidebar.header("Fixed commitments")
    uploaded = st.sidebar.file_uploader("Import .ics", type=["ics"])
    if uploaded is not None and st.sidebar.button("Import commitments"):
        try:
            commitments = parse_ics_bytes(uploaded.getvalue())
        except ValueError as exc:
            st.sidebar.error(f"Could not read calendar: {exc}")
        else:
            service.add_commitments(commitments)
            service.save()
            _queue_toast(f"Imported {len(commitments)} commitments.")
            st.rerun()


def main() -> None:
    service = _service()
    _flush_toast()
    render_sidebar(service)

    st.title("Study Plan")
    render_missed_alert(service)

    plans = sorted(service.state.plans, key=lambda p: p.date)
    if not plans:
        st.info("No study plans yet. Generate a plan to get started.")
        return

    today = service.clock.today()
    for plan in plans:
        with st.container(border=True):
            render_day(service, plan, today)

    st.divider()
    render_summary(service)


main()
