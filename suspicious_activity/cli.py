#!/usr/bin/env python3
"""Command-line front end for suspicious-activity video analysis.

Usage:
    suspicious-activity [--base-url URL] [--token TOKEN] [-v] COMMAND ...

Commands:
    cameras                       List cameras
    videos CAMERA_ID              List stored videos of a camera
    types                         List detectable activity types
    jobs                          List your analysis jobs
    submit CAMERA_ID VIDEO_NAME   Start analyzing a stored video
    status JOB_ID                 Check the state of a running job
    detail JOB_ID                 Show the detections of a completed job
    promote JOB_ID DETECTION_ID   Publish an alert for a detection
    stats [--local]               Show analysis statistics

Environment variables:
    API_BASE_URL     Backend URL (default: http://127.0.0.1:8000)
    ACCESS_TOKEN     Bearer token of the logged-in user
    TOKEN_FILE       File containing the bearer token
    LOG_LEVEL        Log level (default: INFO)
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from suspicious_activity import __version__
from suspicious_activity.config import get_settings
from suspicious_activity.exceptions import (
    AuthMissing,
    InvalidSelection,
    JobNotFound,
    SuspiciousActivityError,
)
from suspicious_activity.models import AnalysisJob, Detection, JobAction
from suspicious_activity.services import StaticTokenAuthenticator, StatisticsAggregator
from suspicious_activity.session import AnalysisSession
from suspicious_activity.utils import format_duration, format_size

logger = logging.getLogger("suspicious_activity")


def format_job(job: AnalysisJob) -> str:
    line = (
        f"{job.id:>6}  {job.state_display or job.state.value:<12} "
        f"{job.video_name} - {job.camera_id.upper()}  "
        f"detections={job.detection_count}"
    )
    if job.average_confidence is not None:
        line += f"  confidence={job.average_confidence:.1f}%"
    if job.error_message:
        line += f"  error={job.error_message}"
    actions = sorted(action.value for action in job.actions)
    if actions:
        line += f"  [{', '.join(actions)}]"
    return line


def format_detection(detection: Detection) -> str:
    activity = detection.activity_type
    line = (
        f"{detection.id:>6}  {activity.category_display or activity.category.value}: "
        f"{activity.name}  {format_duration(detection.start_offset_seconds)}"
        f" - {format_duration(detection.end_offset_seconds)}"
        f"  ({detection.confidence:.1f}% confidence)"
    )
    if detection.detected_objects:
        line += f"  objects={','.join(sorted(detection.detected_objects))}"
    if detection.alert_generated:
        line += f"  alert={detection.alert_id}"
    return line


async def _load_job(session: AnalysisSession, job_id: int) -> AnalysisJob:
    await session.orchestrator.list_mine()
    job = session.store.get(job_id)
    if job is None:
        raise JobNotFound(job_id)
    return job


async def run_command(args: argparse.Namespace, session: AnalysisSession) -> int:
    command = args.command

    if command == "cameras":
        for camera in await session.cameras.list_cameras():
            print(f"{camera.id}  {camera.name}  {camera.location}")

    elif command == "videos":
        for video in await session.videos.list_videos(args.camera_id):
            print(
                f"{video.name}  {format_size(video.size_bytes)}  "
                f"{video.last_modified.isoformat()}"
            )

    elif command == "types":
        for activity in await session.activity_types.list_activity_types():
            status = "" if activity.active else "  (inactive)"
            print(f"{activity.id:>4}  {activity.category.value:<10} {activity.name}{status}")

    elif command == "jobs":
        jobs = await session.orchestrator.list_mine()
        if not jobs:
            print("No analysis jobs yet.")
        for job in jobs:
            print(format_job(job))

    elif command == "submit":
        cameras = await session.cameras.list_cameras()
        camera = next((c for c in cameras if c.id == args.camera_id), None)
        if camera is None:
            raise InvalidSelection(f"Camera {args.camera_id} not found")
        await session.selection.select_camera(camera)
        if session.selection.video_error:
            print(f"Could not load videos: {session.selection.video_error}", file=sys.stderr)
            return 1
        session.selection.select_video(args.video_name)
        job = await session.selection.submit()
        print(format_job(job))

    elif command == "status":
        job = await _load_job(session, args.job_id)
        if JobAction.CHECK_STATUS in job.actions:
            job = await session.orchestrator.poll_status(job.id) or job
        print(format_job(job))

    elif command == "detail":
        job = await _load_job(session, args.job_id)
        if JobAction.VIEW_DETAIL not in job.actions:
            print(format_job(job))
            return 0
        job = await session.orchestrator.fetch_detail(job.id)
        print(format_job(job))
        for detection in job.detections or ():
            print(format_detection(detection))

    elif command == "promote":
        await _load_job(session, args.job_id)
        await session.orchestrator.fetch_detail(args.job_id)
        result = await session.promoter.promote(args.detection_id)
        suffix = " (already generated)" if result.already_promoted else ""
        print(f"Alert {result.alert_id} for detection {result.detection_id}{suffix}")

    elif command == "stats":
        if args.local:
            await session.orchestrator.list_mine()
            stats = StatisticsAggregator.summarize(session.store.jobs())
        else:
            stats = await session.statistics.fetch()
        print(f"Total jobs:         {stats.total_jobs}")
        print(f"Completed:          {stats.completed_jobs}")
        print(f"Processing:         {stats.processing_jobs}")
        print(f"Detections:         {stats.total_detections}")
        print(f"Average confidence: {stats.average_confidence:.1f}%")
        print(f"Alerts generated:   {stats.alerts_generated}")
        for category, count in sorted(stats.detections_by_category.items()):
            print(f"  {category}: {count}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="suspicious-activity",
        description="Suspicious-activity video analysis client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--base-url", type=str, default=None, help="Backend base URL")
    parser.add_argument("--token", type=str, default=None, help="Bearer token")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("cameras", help="List cameras")
    videos = sub.add_parser("videos", help="List stored videos of a camera")
    videos.add_argument("camera_id")
    sub.add_parser("types", help="List detectable activity types")
    sub.add_parser("jobs", help="List your analysis jobs")
    submit = sub.add_parser("submit", help="Start analyzing a stored video")
    submit.add_argument("camera_id")
    submit.add_argument("video_name")
    status = sub.add_parser("status", help="Check the state of a running job")
    status.add_argument("job_id", type=int)
    detail = sub.add_parser("detail", help="Show detections of a completed job")
    detail.add_argument("job_id", type=int)
    promote = sub.add_parser("promote", help="Publish an alert for a detection")
    promote.add_argument("job_id", type=int)
    promote.add_argument("detection_id", type=int)
    stats = sub.add_parser("stats", help="Show analysis statistics")
    stats.add_argument(
        "--local",
        action="store_true",
        help="Compute from your loaded jobs instead of the backend aggregate",
    )
    return parser


async def main_async(args: argparse.Namespace) -> int:
    """Async main entry point."""
    settings = get_settings()
    if args.base_url:
        settings = settings.model_copy(update={"api_base_url": args.base_url})
    authenticator = StaticTokenAuthenticator(args.token) if args.token else None

    async with AnalysisSession(settings, authenticator=authenticator) as session:
        return await run_command(args, session)


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        print(f"Error: invalid configuration: {problems}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        code = asyncio.run(main_async(args))
    except AuthMissing as e:
        print(f"Error: {e}. Log in or set ACCESS_TOKEN.", file=sys.stderr)
        sys.exit(2)
    except SuspiciousActivityError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
