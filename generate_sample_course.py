#!/usr/bin/env python3
"""
Generate a sample parkour course into an in-memory grid.

Usage:
    python generate_sample_course.py [--theme overworld] [--segments 20] [--seed 42]
"""

import argparse
from collections import Counter

import structlog

from py_parkour.config import list_themes, get_theme, settings
from py_parkour.core.environment import InMemoryGrid
from py_parkour.core.orchestrator import CourseGenerator
from py_parkour.logging_config import configure_logging
from py_parkour.utils.random import set_random_seed

logger = structlog.get_logger()


def generate_course(theme_name: str, segments: int, seed=None):
    """Generate ``segments`` segments after the first and place them."""
    set_random_seed(seed)

    generator = CourseGenerator(get_theme(theme_name), settings)
    course = generator.start_course()
    generator.extend(course, segments)

    env = InMemoryGrid()
    for segment in course.segments:
        segment.place(env)

    return course, env


def main():
    parser = argparse.ArgumentParser(description="Generate a sample parkour course")
    parser.add_argument("--theme", default=settings.default_theme, choices=list_themes())
    parser.add_argument("--segments", type=int, default=20)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-format", choices=["json", "console"], default=None)
    args = parser.parse_args()

    if args.log_format is not None:
        settings.log_format = args.log_format
    configure_logging(settings)

    course, env = generate_course(args.theme, args.segments, args.seed)

    kinds = Counter(segment.kind for segment in course.segments)
    heights = [segment.absolute_end.y for segment in course.segments]

    logger.info(
        "Course generated",
        theme=args.theme,
        seed=args.seed,
        segments=len(course),
        cells=len(env),
        bounds=env.bounds(),
        kinds=dict(kinds),
        min_height=min(heights),
        max_height=max(heights),
    )


if __name__ == "__main__":
    main()
