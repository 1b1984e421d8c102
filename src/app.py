import streamlit as st
import plotly.express as px

from streamlit_calendar import calendar

from studyplanner.clock import DAYS, fmt_hour, set_clock_offset, week_title
from studyplanner.grid import daily_available_hours
from studyplanner.local_store import load_tasks_from_local, save_tasks_locally
from studyplanner.metrics import start_metrics_server
from studyplanner.models import SORT_MODES, UserPrefs
from studyplanner.session import PlannerSession

TASKS_CSV = "tasks_local.csv"


# Session State Setup
if "prefs" not in st.session_state:
    st.session_state.prefs = UserPrefs.from_env()
    set_clock_offset(st.session_state.prefs.clock_offset_ms)

if "metrics_started" not in st.session_state:
    start_metrics_server(st.session_state.prefs.metrics_port)
    st.session_state.metrics_started = True

if "planner" not in st.session_state:
    planner = PlannerSession(st.session_state.prefs)
    for t in load_tasks_from_local(TASKS_CSV):
        added = planner.task_store.add(t)
        if t.completed:
            planner.task_store.set_completed(added.id, True)
    planner.attach()
    st.session_state.planner = planner

planner: PlannerSession = st.session_state.planner
prefs: UserPrefs = st.session_state.prefs
hours = list(range(prefs.first_hour, prefs.last_hour + 1))


# Sidebar: Week
st.sidebar.title("Study Planner")
st.sidebar.subheader("Week")
col_prev, col_next = st.sidebar.columns(2)
if col_prev.button("< Prev"):
    planner.prev_week()
if col_next.button("Next >"):
    planner.next_week()
st.sidebar.caption(week_title(planner.week_offset, planner.now()))

# Sidebar: Calendar hour
st.sidebar.subheader("Toggle Study Hour")
with st.sidebar.form("slot_form"):
    s_day = st.selectbox("Day", list(range(7)), format_func=lambda d: DAYS[d], key="s_day")
    s_hour = st.selectbox("Hour", hours, format_func=fmt_hour, key="s_hour")
    c1, c2 = st.columns(2)
    toggle = c1.form_submit_button("Toggle")
    override = c2.form_submit_button("Make fixed")
    if toggle:
        action = planner.toggle_slot(s_day, s_hour)
        st.sidebar.success(f"{DAYS[s_day]} {fmt_hour(s_hour)}: {action}")
    if override:
        if planner.classify_slot(s_day, s_hour) == "base":
            planner.convert_to_override(s_day, s_hour)
        else:
            st.sidebar.error("Only base schedule hours can be made fixed.")

# Sidebar: Base schedule
st.sidebar.subheader("Base Schedule")
with st.sidebar.form("pattern_form"):
    p_day = st.selectbox("Day", list(range(7)), format_func=lambda d: DAYS[d], key="p_day")
    p_hour = st.selectbox("Hour", hours, format_func=fmt_hour, key="p_hour")
    c1, c2, c3 = st.columns(3)
    p_toggle = c1.form_submit_button("Toggle")
    p_clear = c2.form_submit_button("Clear all")
    p_save = c3.form_submit_button("Save")
    if p_toggle:
        planner.toggle_pattern(p_day, p_hour)
    if p_clear:
        planner.clear_pattern()
    if p_save:
        planner.save_pattern()
st.sidebar.caption(
    ", ".join(f"{DAYS[s.weekday]} {fmt_hour(s.hour)}" for s in planner.base_pattern)
    or "No base schedule yet."
)

# Sidebar: Task
st.sidebar.subheader("Add Task")
with st.sidebar.form("task_form"):
    t_name = st.text_input("Task name", key="t_name")
    t_due = st.date_input("Due date", key="t_due")
    t_hours = st.number_input("Time needed (hours)", min_value=0.5, max_value=40.0, step=0.5, value=1.0)
    t_importance = st.slider("Importance (1 low, 5 high)", 1, 5, prefs.default_importance)
    add_task = st.form_submit_button("Add Task")
    if add_task:
        if t_name:
            planner.add_task(t_name, t_due.isoformat(), float(t_hours), int(t_importance))
            save_tasks_locally(TASKS_CSV, planner.tasks)
        else:
            st.sidebar.error("Please enter a task name.")


# Main: Calendar
st.title("Weekly Study Calendar")
st.markdown(f"### {week_title(planner.week_offset, planner.now())}")

if not planner.base_pattern:
    st.info("No base schedule yet. Add recurring study hours in the sidebar.")

events = [{
    "title": "Study" if b.kind.value == "persisted" else "Base schedule",
    "start": b.start.isoformat(),
    "end": b.end.isoformat(),
    "id": b.block_id or f"base-{b.slot_key}",
    "color": "#1f77b4" if b.kind.value == "persisted" else "#2ca02c",
} for b in planner.visible]

week_start, _ = planner.week_range()
cal_options = {
    "initialView": "timeGridWeek",
    "initialDate": week_start.strftime("%Y-%m-%d"),
    "slotMinTime": f"{prefs.first_hour:02d}:00:00",
    "slotMaxTime": f"{min(prefs.last_hour + 1, 24):02d}:00:00",
    "allDaySlot": False,
    "nowIndicator": True,
    "weekNumbers": False,
    "firstDay": 1,  # Monday
}
calendar(events=events, options=cal_options, key=f"calendar-{planner.week_id()}")

daily = daily_available_hours(planner.visible, week_start)
fig = px.bar(daily, x="date", y=["persisted", "base"],
             labels={"date": "Day", "value": "Hours", "variable": "Source"})
st.plotly_chart(fig, use_container_width=True)


# Main: Tasks
st.markdown("## Tasks")
sort_mode = st.selectbox("Sort by", SORT_MODES, index=SORT_MODES.index(prefs.sort_mode))
ranked = planner.ranking_frame(sort_mode=sort_mode)

if ranked.empty:
    st.write("No tasks yet.")
else:
    st.dataframe(ranked.drop(columns=["id"]).round({"time_available_hours": 1, "slack_margin": 2, "score": 1}))

    sel = st.selectbox(
        "Select a task:",
        options=list(ranked.index),
        format_func=lambda idx: f'{ranked.loc[idx, "name"]} (due {ranked.loc[idx, "due_date"]})',
    )
    c1, c2 = st.columns(2)
    if c1.button("Toggle complete"):
        row = ranked.loc[sel]
        planner.set_completed(row["id"], not bool(row["completed"]))
        save_tasks_locally(TASKS_CSV, planner.tasks)
        st.rerun()
    if c2.button("Delete task"):
        planner.delete_task(ranked.loc[sel, "id"])
        save_tasks_locally(TASKS_CSV, planner.tasks)
        st.rerun()


# Settings
st.markdown("---")
with st.expander("Settings"):
    st.write(f"Week offset: {planner.week_offset} ({planner.week_id()})")
    if st.button("Delete all my data"):
        planner.delete_all_data()
        save_tasks_locally(TASKS_CSV, [])
        st.success("Your planner data has been deleted.")
        st.rerun()
