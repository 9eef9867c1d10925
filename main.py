"""Main entry point for the Milestone Timeline Planner."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from timeline.engine.graph import DependencyCycleError, validate_dependencies
from timeline.evaluation.evaluator import Evaluator
from timeline.evaluation.generator import ProjectGenerator
from timeline.project import Project
from timeline.utils.config import load_config_or_default
from timeline.utils.datetime_utils import to_date
from timeline.utils.logging_setup import setup_logging
from timeline.utils.serialization import load_project, save_project

logger = logging.getLogger("timeline.cli")


def run_schedule(args, config: dict) -> int:
    """Schedule a project file and write it back (or to --output)."""
    project = load_project(args.project, config)
    if args.start:
        project.project_start_date = to_date(args.start)

    try:
        project.reschedule()
    except DependencyCycleError as exc:
        logger.error("%s", exc)
        return 1

    output = save_project(project, args.output or args.project)
    print(f"Scheduled {sum(len(m.tasks) for m in project.milestones)} tasks in {len(project.milestones)} milestones")
    for milestone in project.milestones:
        print(f"  {milestone.milestone_id} {milestone.milestone_name}: {milestone.start_date} .. {milestone.end_date}")
    print(f"Project saved to: {output}")
    return 0


def run_validate(args, config: dict) -> int:
    project = load_project(args.project, config)
    result = validate_dependencies(project.milestones)

    for error in result.errors:
        print(f"ERROR: {error}")
    for warning in result.warnings:
        print(f"WARNING: {warning}")
    print("Dependencies are valid" if result.is_valid else f"{len(result.errors)} error(s) found")
    return 0 if result.is_valid else 1


def run_history(args, config: dict) -> int:
    project = load_project(args.project, config)
    print(project.change_log.to_human_readable())
    return 0


def run_rollback(args, config: dict) -> int:
    """Roll a project file back to the state right after log entry --index."""
    project = load_project(args.project, config)
    before = len(project.change_log)

    try:
        project.rollback(args.index)
    except DependencyCycleError as exc:
        logger.error("%s", exc)
        return 1

    output = save_project(project, args.output or args.project)
    print(f"Rolled back {before - len(project.change_log)} change(s); log now has {len(project.change_log)} entries")
    print(f"Project saved to: {output}")
    return 0


def run_generate(args, config: dict) -> int:
    """Write a synthetic project to --output."""
    generator = ProjectGenerator(seed=args.seed, config=config)
    project = Project(
        name="Generated Project",
        project_start_date=to_date(args.start) if args.start else date.today(),
        milestones=generator.generate_milestones(),
        config=config,
    )
    project.reschedule()

    output = save_project(project, args.output or "results/generated_project.json")
    print(f"Generated {sum(len(m.tasks) for m in project.milestones)} tasks in {len(project.milestones)} milestones")
    print(f"Project saved to: {output}")
    return 0


def run_evaluation(args, config: dict) -> int:
    evaluator = Evaluator(config)
    evaluator.generator = ProjectGenerator(seed=args.seed, config=config)
    start = to_date(args.start) if args.start else date.today()
    result = evaluator.run_evaluation(start, output_dir=args.output or "results")
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Milestone Timeline Planner"
    )
    parser.add_argument(
        'command',
        choices=['schedule', 'validate', 'history', 'rollback', 'generate', 'evaluate'],
        help='Command to run'
    )
    parser.add_argument(
        'project',
        nargs='?',
        help='Project file (.json, .yaml or .yml)'
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--start',
        type=str,
        help='Project start date (YYYY-MM-DD)'
    )
    parser.add_argument(
        '--index',
        type=int,
        help='Change log index to roll back to'
    )
    parser.add_argument(
        '--output',
        type=str,
        help='Output file or directory'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for generate/evaluate (default: 42)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        help='Logging level (default: TIMELINE_LOG_LEVEL or config)'
    )
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config_or_default(args.config)
    log_config = config.get('logging', {})
    setup_logging(args.log_level, log_config.get('file'), default_level=log_config.get('level') or 'INFO')

    needs_project = args.command in ('schedule', 'validate', 'history', 'rollback')
    if needs_project and not args.project:
        parser.error(f"'{args.command}' requires a project file")
    if args.command == 'rollback' and args.index is None:
        parser.error("'rollback' requires --index")
    if needs_project and not Path(args.project).exists():
        parser.error(f"Project file not found: {args.project}")

    commands = {
        'schedule': run_schedule,
        'validate': run_validate,
        'history': run_history,
        'rollback': run_rollback,
        'generate': run_generate,
        'evaluate': run_evaluation,
    }
    return commands[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
