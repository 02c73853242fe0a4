"""
Command-line interface for the cadence scheduler.

Provides CLI commands for:
- Running configured jobs in the foreground
- Running the hello-world demo
- Computing the next fire time of a cadence
- Adding/removing/enabling/disabling configured jobs
- Managing configuration
"""

import argparse
import logging
import signal
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from cadence_scheduler.cadence import (
    DayOfWeek,
    Daily,
    Hourly,
    Weekly,
    interval,
    next_fire_time,
)
from cadence_scheduler.config import (
    JobConfig,
    ScheduleConfig,
    SchedulerConfig,
    cadence_from_config,
    get_log_dir,
)
from cadence_scheduler.jobs import HelloWorldJob
from cadence_scheduler.runner import RecurringTaskRunner

logger = logging.getLogger(__name__)

CONSOLE_HANDLER_NAME = 'cadence_scheduler.console'
FILE_HANDLER_NAME = 'cadence_scheduler.file'


def setup_logging(log_file: str = None, verbose: bool = False, level: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if handler.get_name() in (CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME):
            root_logger.removeHandler(handler)
            handler.close()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(level)
    console_formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.set_name(FILE_HANDLER_NAME)
        file_handler.setLevel(level)
        file_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)


def _schedule_from_args(args) -> Optional[ScheduleConfig]:
    """Build a schedule config from --hourly/--daily/--weekly."""
    if args.hourly is not None:
        return ScheduleConfig(type='hourly', minute=args.hourly)
    if args.daily:
        return ScheduleConfig(type='daily', time=args.daily)
    if args.weekly:
        day, time_str = args.weekly
        return ScheduleConfig(type='weekly', day=day, time=time_str)
    return None


def _positive_float(value: str) -> float:
    """argparse type for a strictly positive number of seconds."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def _add_cadence_arguments(parser: argparse.ArgumentParser):
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--hourly', type=int, metavar='MINUTE',
                       help='Every hour at MINUTE past the hour')
    group.add_argument('--daily', type=str, metavar='HH:MM', help='Every day at HH:MM')
    group.add_argument('--weekly', nargs=2, metavar=('DAY', 'HH:MM'),
                       help='Every week on DAY at HH:MM')


def _describe_schedule(schedule: ScheduleConfig) -> str:
    try:
        return str(cadence_from_config(schedule))
    except ValueError as e:
        return f"invalid ({e})"


def _run_until_stopped(runner: RecurringTaskRunner, duration: Optional[float], wait: bool = True):
    """Block until SIGINT/SIGTERM or ``duration`` seconds elapse, then shut down."""
    stop_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        stop_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if duration is not None:
        logger.info(f"Running for {duration:g} second(s). Press Ctrl+C to stop.")
    else:
        logger.info("Running in foreground mode. Press Ctrl+C to stop.")

    stop_event.wait(timeout=duration)
    runner.shutdown(wait=wait)


def cmd_run(args):
    """Run configured jobs in the foreground."""
    config = SchedulerConfig(args.config)
    setup_logging(
        log_file=args.log_file or config.logging.file,
        verbose=args.verbose,
        level=config.logging.level
    )

    for error in config.validate():
        logger.warning(f"Configuration problem: {error}")

    try:
        runner = RecurringTaskRunner(max_workers=args.workers or config.runner.max_workers)
        count = runner.load_jobs_from_config(config)
    except Exception as e:
        logger.error(f"Failed to start scheduler: {e}", exc_info=True)
        sys.exit(1)

    if count:
        logger.info(f"Loaded {count} job(s):")
        for job in runner.get_jobs():
            logger.info(f"  - {job['name']} ({job['cadence']}): next run at {job['next_run']}")
    else:
        logger.warning("No jobs loaded")

    _run_until_stopped(runner, args.duration, wait=config.runner.shutdown_wait)


def cmd_demo(args):
    """Run three hello-world jobs for a bounded time."""
    setup_logging(verbose=args.verbose)

    runner = RecurringTaskRunner(max_workers=3)
    runner.schedule(HelloWorldJob("Hourly@15"), Hourly(15))
    runner.schedule(HelloWorldJob("Daily@14:30"), Daily(14, 30))
    runner.schedule(HelloWorldJob("Weekly@Sun10"), Weekly(DayOfWeek.SUNDAY, 10, 0))

    _run_until_stopped(runner, args.duration)


def cmd_next(args):
    """Show the next fire time of a cadence."""
    try:
        cadence = cadence_from_config(_schedule_from_args(args))
        now = datetime.fromisoformat(args.now) if args.now else datetime.now()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    fire_time = next_fire_time(cadence, now)
    print(f"Cadence:    {cadence}")
    print(f"Now:        {now.isoformat(sep=' ')}")
    print(f"Next run:   {fire_time.isoformat(sep=' ')}")
    print(f"Delay:      {int((fire_time - now).total_seconds())}s")
    print(f"Interval:   {int(interval(cadence).total_seconds())}s")


def cmd_list(args):
    """List configured jobs with their next run time."""
    setup_logging(verbose=args.verbose)

    try:
        config = SchedulerConfig(args.config)
    except Exception as e:
        logger.error(f"Failed to list jobs: {e}")
        sys.exit(1)

    now = datetime.now()
    print(f"=== Configured Jobs ({len(config.jobs)}) ===\n")

    for job in config.jobs:
        status = "✓" if job.enabled else "✗"
        print(f"{status} {job.name}")
        print(f"    Command: {job.command}")
        print(f"    Schedule: {_describe_schedule(job.schedule)}")
        try:
            print(f"    Next Run: {next_fire_time(cadence_from_config(job.schedule), now).isoformat(sep=' ')}")
        except ValueError:
            pass
        if job.description:
            print(f"    Description: {job.description}")
        if job.timeout != 3600:
            print(f"    Timeout: {job.timeout}s")
        print()


def cmd_add(args):
    """Add a new scheduled job."""
    setup_logging(verbose=args.verbose)

    try:
        config = SchedulerConfig(args.config)
        schedule = _schedule_from_args(args)

        # Fail before saving anything
        cadence = cadence_from_config(schedule)

        job = JobConfig(
            name=args.name,
            command=args.command,
            enabled=True,
            schedule=schedule,
            timeout=args.timeout,
            description=args.description
        )

        config.add_job(job)
        config.save()

        logger.info(f"Added job '{args.name}' ({cadence})")
        logger.info(f"Command: {args.command}")
        logger.info("Restart scheduler for changes to take effect")

    except Exception as e:
        logger.error(f"Failed to add job: {e}")
        sys.exit(1)


def cmd_remove(args):
    """Remove a scheduled job."""
    setup_logging(verbose=args.verbose)

    try:
        config = SchedulerConfig(args.config)

        if config.remove_job(args.name):
            config.save()
            logger.info(f"Removed job '{args.name}'")
            logger.info("Restart scheduler for changes to take effect")
        else:
            logger.error(f"Job '{args.name}' not found")
            sys.exit(1)

    except Exception as e:
        logger.error(f"Failed to remove job: {e}")
        sys.exit(1)


def cmd_enable(args):
    """Enable a job."""
    setup_logging(verbose=args.verbose)

    try:
        config = SchedulerConfig(args.config)
        config.enable_job(args.name)
        config.save()
        logger.info(f"Enabled job '{args.name}'")
    except Exception as e:
        logger.error(f"Failed to enable job: {e}")
        sys.exit(1)


def cmd_disable(args):
    """Disable a job."""
    setup_logging(verbose=args.verbose)

    try:
        config = SchedulerConfig(args.config)
        config.disable_job(args.name)
        config.save()
        logger.info(f"Disabled job '{args.name}'")
    except Exception as e:
        logger.error(f"Failed to disable job: {e}")
        sys.exit(1)


def cmd_init(args):
    """Initialize scheduler configuration."""
    setup_logging(verbose=args.verbose)

    try:
        config = SchedulerConfig(args.config)
        config.save()

        logger.info(f"Initialized scheduler configuration at: {config.config_path}")

        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created log directory: {log_dir}")

    except Exception as e:
        logger.error(f"Failed to initialize: {e}")
        sys.exit(1)


def cmd_show_config(args):
    """Show current configuration."""
    setup_logging(verbose=args.verbose)

    try:
        config = SchedulerConfig(args.config)

        print(f"\nConfiguration file: {config.config_path}")
        print(f"\nJobs: {len(config.jobs)}")
        print(f"Logging level: {config.logging.level}")
        print(f"Log file: {config.logging.file}")
        print(f"Max workers: {config.runner.max_workers}")
        print(f"Wait for running jobs on shutdown: {config.runner.shutdown_wait}")

        errors = config.validate()
        if errors:
            print("\nProblems:")
            for error in errors:
                print(f"  - {error}")

    except Exception as e:
        logger.error(f"Failed to show config: {e}")
        sys.exit(1)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Cadence Scheduler - Run jobs hourly, daily or weekly",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '-c', '--config',
        type=str,
        help='Path to scheduler configuration file'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='subcommand', help='Available commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run configured jobs in the foreground')
    run_parser.add_argument('--workers', type=int, help='Number of worker threads')
    run_parser.add_argument('--duration', type=_positive_float,
                            help='Stop after this many seconds (default: run until interrupted)')
    run_parser.add_argument('--log-file', type=str, help='Log file path')
    run_parser.set_defaults(func=cmd_run)

    # Demo command
    demo_parser = subparsers.add_parser('demo', help='Run hello-world jobs on sample cadences')
    demo_parser.add_argument('--duration', type=_positive_float, default=600,
                             help='Stop after this many seconds (default: 600)')
    demo_parser.set_defaults(func=cmd_demo)

    # Next command
    next_parser = subparsers.add_parser('next', help='Show the next fire time of a cadence')
    _add_cadence_arguments(next_parser)
    next_parser.add_argument('--now', type=str,
                             help='Reference time (YYYY-MM-DD HH:MM[:SS]), default: current time')
    next_parser.set_defaults(func=cmd_next)

    # List command
    list_parser = subparsers.add_parser('list', help='List configured jobs')
    list_parser.set_defaults(func=cmd_list)

    # Add command
    add_parser = subparsers.add_parser('add', help='Add a new scheduled job')
    add_parser.add_argument('name', help='Job name')
    add_parser.add_argument(
        '--command',
        required=True,
        help='Shell command to execute'
    )
    _add_cadence_arguments(add_parser)
    add_parser.add_argument('--timeout', type=int, default=3600,
                            help='Command timeout in seconds (default: 3600)')
    add_parser.add_argument('--description', type=str, help='Human-readable description')
    add_parser.set_defaults(func=cmd_add)

    # Remove command
    remove_parser = subparsers.add_parser('remove', help='Remove a scheduled job')
    remove_parser.add_argument('name', help='Job name to remove')
    remove_parser.set_defaults(func=cmd_remove)

    # Enable command
    enable_parser = subparsers.add_parser('enable', help='Enable a job')
    enable_parser.add_argument('name', help='Job name to enable')
    enable_parser.set_defaults(func=cmd_enable)

    # Disable command
    disable_parser = subparsers.add_parser('disable', help='Disable a job')
    disable_parser.add_argument('name', help='Job name to disable')
    disable_parser.set_defaults(func=cmd_disable)

    # Init command
    init_parser = subparsers.add_parser('init', help='Initialize scheduler configuration')
    init_parser.set_defaults(func=cmd_init)

    # Show config command
    show_config_parser = subparsers.add_parser('show-config', help='Show configuration')
    show_config_parser.set_defaults(func=cmd_show_config)

    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == '__main__':
    main()
