"""CLI entry point for job scout."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx

from src.core.config import Settings
from src.core.db import init_db
from src.core.errors import JobScoutError
from src.core.schemas import CandidateProfile, LlmConfig, ProviderName
from src.core.store import SqliteStore
from src.llm import available_providers, get_provider

DEFAULT_CONFIG = "config/settings.yaml"


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG} if present)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def _add_llm(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=available_providers(),
        default=None,
        help="LLM provider (default: llm.default_provider from settings)",
    )
    parser.add_argument("--api-key", default=None, help="API key for a cloud provider")
    parser.add_argument("--url", default=None, help="Base URL of a local model server")
    parser.add_argument("--model", default=None, help="Override the provider's model")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job scout - discover career pages, scrape jobs, and score them with an LLM",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind host (default: from settings)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: from settings)")
    _add_common(serve_parser)

    add_parser = subparsers.add_parser("add-company", help="Register a target company")
    add_parser.add_argument("name", help="Company name")
    _add_common(add_parser)

    list_parser = subparsers.add_parser("list-companies", help="Show registered companies")
    _add_common(list_parser)

    find_parser = subparsers.add_parser(
        "find-career-page", help="Ask the LLM for a company's career page",
    )
    find_parser.add_argument("company_id", type=int, help="Company ID")
    _add_common(find_parser)
    _add_llm(find_parser)

    scrape_parser = subparsers.add_parser(
        "scrape-jobs", help="Scrape a company's career page for listings",
    )
    scrape_parser.add_argument("company_id", type=int, help="Company ID")
    _add_common(scrape_parser)
    _add_llm(scrape_parser)

    analyze_parser = subparsers.add_parser(
        "analyze", help="Score stored jobs against a candidate profile",
    )
    analyze_parser.add_argument(
        "--profile",
        default="config/profile.yaml",
        help="Path to profile YAML (default: config/profile.yaml)",
    )
    _add_common(analyze_parser)
    _add_llm(analyze_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str | None) -> Settings:
    """Load settings from ``path``; without one, use the default file if it exists."""
    if path is not None:
        return Settings.from_yaml(path)
    if Path(DEFAULT_CONFIG).exists():
        return Settings.from_yaml(DEFAULT_CONFIG)
    return Settings.from_dict({})


def _llm_config(args: argparse.Namespace, settings: Settings) -> LlmConfig:
    provider = ProviderName(args.provider) if args.provider else settings.llm.default_provider
    return LlmConfig(provider=provider, api_key=args.api_key, url=args.url, model=args.model)


def cmd_serve(args: argparse.Namespace, settings: Settings) -> None:
    import uvicorn

    from src.api.app import create_app

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    uvicorn.run(create_app(settings), host=host, port=port)


async def cmd_add_company(args: argparse.Namespace, store: SqliteStore) -> None:
    company = await store.add_company(args.name)
    print(f"Added company {company.id}: {company.name}")


async def cmd_list_companies(store: SqliteStore) -> None:
    companies = await store.list_companies()
    if not companies:
        print("No companies registered.")
    for c in companies:
        url = c.career_page_url or "-"
        print(f"  [{c.id}] {c.name} ({c.status.value}) {url}")


async def cmd_find_career_page(
    args: argparse.Namespace, settings: Settings, store: SqliteStore,
) -> None:
    from src.careers.finder import find_career_page

    provider = get_provider(_llm_config(args, settings), settings.llm)
    url = await find_career_page(args.company_id, store, provider)
    print(f"Career page: {url}" if url else "Career page not found.")


async def cmd_scrape_jobs(
    args: argparse.Namespace, settings: Settings, store: SqliteStore,
) -> None:
    from src.careers.scraper import scrape_jobs

    provider = get_provider(_llm_config(args, settings), settings.llm)
    async with httpx.AsyncClient(follow_redirects=True) as client:
        count = await scrape_jobs(args.company_id, store, provider, client, settings.scraper)
    print(f"{count} jobs scraped successfully.")


async def cmd_analyze(
    args: argparse.Namespace, settings: Settings, store: SqliteStore,
) -> None:
    from src.pipeline.orchestrator import AnalysisOrchestrator

    profile = CandidateProfile.from_yaml(args.profile)
    orchestrator = AnalysisOrchestrator(settings, store)
    run = await orchestrator.run_analysis(profile, _llm_config(args, settings))

    print(f"\nAnalysis complete: {run.analyzed_count} analyzed, "
          f"{run.failed_count} failed, {len(run.jobs)} matched.")
    print(json.dumps(run.model_dump(mode="json")["jobs"], indent=2))


async def run_command(args: argparse.Namespace, settings: Settings) -> None:
    conn = init_db(settings.database.path)
    store = SqliteStore(conn)
    try:
        if args.command == "add-company":
            await cmd_add_company(args, store)
        elif args.command == "list-companies":
            await cmd_list_companies(store)
        elif args.command == "find-career-page":
            await cmd_find_career_page(args, settings, store)
        elif args.command == "scrape-jobs":
            await cmd_scrape_jobs(args, settings, store)
        elif args.command == "analyze":
            await cmd_analyze(args, settings, store)
    finally:
        conn.close()


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
        asyncio.run(run_command(args, settings))
    except (JobScoutError, FileNotFoundError, ValueError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
