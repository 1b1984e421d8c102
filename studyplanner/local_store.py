# studyplanner/local_store.py
"""Local CSV cache of the task list, kept for offline reloads."""
import csv
import logging
import os
from datetime import date
from typing import Iterable, List

from .models import Task

logger = logging.getLogger(__name__)

FIELDNAMES = ["id", "name", "due_date", "time_needed", "importance", "completed"]


def save_tasks_locally(path: str, tasks: Iterable[Task]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for t in tasks:
            due = t.due_date.isoformat() if isinstance(t.due_date, date) else (t.due_date or "")
            writer.writerow({
                "id": t.id,
                "name": t.name,
                "due_date": due,
                "time_needed": t.time_needed,
                "importance": t.importance,
                "completed": int(bool(t.completed)),
            })


def load_tasks_from_local(path: str) -> List[Task]:
    if not os.path.isfile(path):
        return []
    tasks: List[Task] = []
    with open(path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            try:
                task = Task(
                    id=row["id"],
                    name=row["name"],
                    due_date=row["due_date"] or None,
                    time_needed=float(row["time_needed"]),
                    importance=int(row["importance"] or 3),
                    completed=row["completed"] in ("1", "True", "true"),
                )
                task.validate()
                tasks.append(task)
            except (KeyError, ValueError) as e:
                logger.warning("skipping unreadable task row %r: %s", row, e)
    return tasks
