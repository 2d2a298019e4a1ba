#!/usr/bin/env python3
"""
02_export_progress.py - Export per-student module progress to CSV.

One row per (student, module): watched lessons, completion percent, lock
state and whether the module's exam has been passed.

Usage:
  python scripts/02_export_progress.py
  python scripts/02_export_progress.py --db data/course.db --output data/progress.csv
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd

from coursegate.classroom import CourseStore, ProgressNavigator, has_passed_exam_for_module
from coursegate.schemas import StudentContext

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_progress_frame(store: CourseStore) -> pd.DataFrame:
    """Collect module progress rows for every student."""
    rows = []
    for student in store.list_students():
        nav = ProgressNavigator(store, StudentContext.from_student(student))
        for nav_module in nav.get_navigation_tree():
            module = nav_module.module
            rows.append({
                "student_id": student.id,
                "email": student.email,
                "access_level": int(student.access_level),
                "module_id": module.id,
                "module": module.title,
                "order": module.order,
                "watched": nav_module.progress.watched_count,
                "total_lessons": nav_module.progress.total_lessons,
                "percent": nav_module.progress.percent,
                "lock": nav_module.lock_reason.kind.value,
                "exam_passed": has_passed_exam_for_module(student.id, module.id, store),
            })
    return pd.DataFrame(rows, columns=[
        "student_id", "email", "access_level", "module_id", "module", "order",
        "watched", "total_lessons", "percent", "lock", "exam_passed",
    ])


def main():
    parser = argparse.ArgumentParser(description="Export student progress to CSV")
    parser.add_argument(
        "--db",
        type=Path,
        default=PROJECT_ROOT / "data" / "course.db",
        help="Course database path"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=PROJECT_ROOT / "data" / "progress.csv",
        help="Output CSV path"
    )
    args = parser.parse_args()

    if not args.db.exists():
        logger.error(f"Course database not found: {args.db}")
        sys.exit(1)

    store = CourseStore(args.db)
    df = build_progress_frame(store)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(args.output, index=False)

    logger.info(f"Exported {len(df)} rows for {df['student_id'].nunique()} students to {args.output}")
    if not df.empty:
        summary = df.groupby("module")["percent"].mean().round(1)
        for module, pct in summary.items():
            logger.info(f"  {module}: {pct}% average completion")


if __name__ == "__main__":
    main()
