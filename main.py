# main.py
import logging

import pandas as pd
import matplotlib.pyplot as plt

from studyplanner.clock import set_clock_offset, week_id
from studyplanner.grid import daily_available_hours
from studyplanner.models import UserPrefs
from studyplanner.session import PlannerSession


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    prefs = UserPrefs.from_env()
    set_clock_offset(prefs.clock_offset_ms)

    # Pin "now" to a Wednesday morning so the demo is reproducible
    now = pd.Timestamp("2025-11-19 09:30")
    session = PlannerSession(prefs, now_fn=lambda: now)
    session.attach()

    # Base pattern: weekday evenings 18-20, Saturday late morning
    for weekday in range(5):
        for hour in (18, 19):
            session.toggle_pattern(weekday, hour)
    session.toggle_pattern(5, 10)
    session.toggle_pattern(5, 11)
    session.save_pattern()

    # Skip Thursday 18:00 this week, keep a one-off library session on Wednesday
    session.set_slot_excluded(3, 18, True)
    session.block_store.add(pd.Timestamp("2025-11-19 13:00"), pd.Timestamp("2025-11-19 16:00"))
    session.convert_to_override(4, 19)

    session.add_task("OS problem set", "2025-11-20", 3, importance=4)
    session.add_task("Read ch. 7", "2025-11-23", 2, importance=2)
    session.add_task("Project report", "2025-11-28", 8, importance=5)
    session.add_task("Lab writeup", "2025-11-17", 1)

    print(f"=== Week {week_id(now)} ===")
    for b in session.visible:
        print(f"{b.kind.value:<9} {b.start:%a %H:%M} - {b.end:%H:%M}")

    print("=== Ranking ===")
    print(session.ranking_frame().to_string(index=False))

    # Plot study hours per day
    daily = daily_available_hours(session.visible, now)
    plt.figure(figsize=(8, 3))
    plt.bar(daily["date"].dt.strftime("%a"), daily["persisted"], label="Study blocks")
    plt.bar(daily["date"].dt.strftime("%a"), daily["base"], bottom=daily["persisted"], label="Base schedule")
    plt.title("Study Time This Week")
    plt.ylabel("Hours")
    plt.legend()
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
