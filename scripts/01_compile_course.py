#!/usr/bin/env python3
"""
01_compile_course.py - Compile a YAML course definition into course.db.

Writes modules, lessons, exams and exam questions into the SQLite database
served by the app, then runs integrity checks.

Usage:
  python scripts/01_compile_course.py --course courses/sample_course.yaml
  python scripts/01_compile_course.py --course courses/sample_course.yaml --output data/course.db \
      --student demo --email demo@example.com --level 2
"""

import argparse
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from coursegate.classroom import CourseStore, parse_access_level
from coursegate.schemas import Student
from coursegate.utils import load_course, write_course

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Compile a YAML course definition into a course database",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--course",
        type=Path,
        default=PROJECT_ROOT / "courses" / "sample_course.yaml",
        help="Path to course definition YAML"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=PROJECT_ROOT / "data" / "course.db",
        help="Output database path"
    )
    parser.add_argument(
        "--student",
        default=None,
        help="Optionally create (or update) a student with this id"
    )
    parser.add_argument("--email", default=None, help="Email of the created student")
    parser.add_argument("--level", type=int, default=1, help="Access level of the created student (1-3)")

    args = parser.parse_args()

    logger.info(f"Loading course definition: {args.course}")
    course = load_course(args.course)
    logger.info(f"  {course.title}: {len(course.modules)} modules")

    store = CourseStore(args.output)

    logger.info("Writing course...")
    counts = write_course(course, store)

    if args.student:
        level = parse_access_level(args.level)
        if level is None:
            parser.error("--level must be 1, 2 or 3")
        store.save_student(Student(id=args.student, email=args.email, access_level=level))
        logger.info(f"Saved student {args.student} at level {int(level)}")

    logger.info("Running integrity checks...")
    issues = store.find_integrity_issues()
    if issues:
        logger.warning(f"Found {len(issues)} integrity issues:")
        for issue in issues[:10]:
            logger.warning(f"  - {issue}")
        if len(issues) > 10:
            logger.warning(f"  ... and {len(issues) - 10} more")
    else:
        logger.info("  All integrity checks passed!")

    stats_path = args.output.with_suffix(".stats.json")
    with open(stats_path, "w", encoding="utf-8") as f:
        json.dump({"title": course.title, **counts, "integrity_issues": issues}, f, indent=2)
    logger.info(f"Saved stats to: {stats_path}")

    logger.info("\n" + "=" * 50)
    logger.info("COMPILATION COMPLETE")
    logger.info("=" * 50)
    logger.info(f"Database: {args.output}")
    logger.info(f"Modules: {counts['modules']}")
    logger.info(f"Lessons: {counts['lessons']}")
    logger.info(f"Exams: {counts['exams']} ({counts['exam_questions']} questions)")


if __name__ == "__main__":
    main()
