"""CLI entry point for the job outreach assistant."""

import argparse
import asyncio
import json
import logging
import shutil
import sys
from pathlib import Path

from src.core.config import Settings, load_settings
from src.core.errors import JobAssistantError
from src.portals.registry import EMPLOYMENT_TYPES, available_portals


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: $JOB_ASSISTANT_CONFIG or built-in defaults)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job outreach assistant - resume match, cold emails, leads and job scraping",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- serve subcommand (default) ---
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind host (overrides config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (overrides config)")
    _add_common(serve_parser)

    # --- scrape subcommand ---
    scrape_parser = subparsers.add_parser("scrape", help="Scrape a job portal into a CSV file")
    scrape_parser.add_argument("--title", required=True, help="Job title to search for")
    scrape_parser.add_argument("--location", required=True, help="Job location")
    scrape_parser.add_argument(
        "--type",
        dest="employment_type",
        default="Full-Time",
        choices=list(EMPLOYMENT_TYPES),
        help="Employment type (default: Full-Time)",
    )
    scrape_parser.add_argument(
        "--portal",
        default=None,
        choices=available_portals(),
        help="Job portal (default: pipeline.default_portal)",
    )
    scrape_parser.add_argument(
        "--output",
        default=".",
        help="Directory to write the CSV into (default: current directory)",
    )
    _add_common(scrape_parser)

    # --- match subcommand ---
    match_parser = subparsers.add_parser("match", help="Score a resume against a job description")
    match_parser.add_argument("--resume", required=True, help="Path to resume (.pdf or text)")
    match_parser.add_argument("--job", required=True, help="Path to job description text file")
    _add_common(match_parser)

    # --- cold-email subcommand ---
    email_parser = subparsers.add_parser("cold-email", help="Draft a cold email for a job")
    email_parser.add_argument("--resume", required=True, help="Path to resume (.pdf or text)")
    email_parser.add_argument("--job", required=True, help="Path to job description text file")
    _add_common(email_parser)

    # --- leads subcommand ---
    leads_parser = subparsers.add_parser("leads", help="Look up contact leads for a company domain")
    leads_parser.add_argument("--domain", required=True, help="Company domain, e.g. example.com")
    _add_common(leads_parser)

    args = parser.parse_args(argv)

    # Default to serve when no subcommand given
    if args.command is None:
        args = parser.parse_args(["serve"])

    return args


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def cmd_serve(args: argparse.Namespace, settings: Settings) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    from src.api.app import create_app

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    print(f"Serving on http://{host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


async def cmd_scrape(args: argparse.Namespace, settings: Settings) -> None:
    """Run the scrape pipeline once and keep the CSV."""
    from src.pipeline.extraction import JobExtractor
    from src.pipeline.orchestrator import ScrapePipeline
    from src.scraping.client import ScrapeClient

    payload = {
        "jobTitle": args.title,
        "jobLocation": args.location,
        "employmentType": args.employment_type,
        "portal": args.portal,
    }
    async with ScrapeClient(settings.scrape) as scraper:
        pipeline = ScrapePipeline(scraper, JobExtractor(settings.llm), settings)
        outcome = await pipeline.run(payload)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / outcome.export.filename
    try:
        shutil.copyfile(outcome.export.path, target)
    finally:
        outcome.export.release()

    if outcome.message:
        print(outcome.message)
    print(f"Scraped {outcome.url}")
    print(f"{len(outcome.records)} jobs written to {target}")


async def cmd_match(args: argparse.Namespace, settings: Settings) -> None:
    from src.assistant.matcher import evaluate_match
    from src.assistant.resume import load_resume_text

    resume = load_resume_text(args.resume)
    job = Path(args.job).read_text(encoding="utf-8")
    result = await evaluate_match(resume, job, settings.assistant)
    print(json.dumps(result.model_dump(), indent=2))


async def cmd_cold_email(args: argparse.Namespace, settings: Settings) -> None:
    from src.assistant.cold_email import generate_cold_email
    from src.assistant.resume import load_resume_text

    resume = load_resume_text(args.resume)
    job = Path(args.job).read_text(encoding="utf-8")
    email = await generate_cold_email(resume, job, settings.assistant)
    print(f"Subject: {email.subject}\n\n{email.body}")


async def cmd_leads(args: argparse.Namespace, settings: Settings) -> None:
    from src.leads.hunter import HunterClient

    leads = await HunterClient(settings.leads).domain_search(args.domain)
    print(json.dumps(leads.model_dump(), indent=2))


_ASYNC_COMMANDS = {
    "scrape": cmd_scrape,
    "match": cmd_match,
    "cold-email": cmd_cold_email,
    "leads": cmd_leads,
}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "serve":
        cmd_serve(args, settings)
        return

    try:
        asyncio.run(_ASYNC_COMMANDS[args.command](args, settings))
    except JobAssistantError as e:
        detail = f" ({e.details})" if e.details else ""
        print(f"Error: {e.error}{detail}", file=sys.stderr)
        sys.exit(1)
    except (FileNotFoundError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
