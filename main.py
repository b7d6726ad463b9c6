"""CLI entry point for the job intake engine."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from src.core.config import Settings
from src.core.context import PipelineContext
from src.core.errors import JobIntakeError
from src.core.schemas import ExtractionResult
from src.llm import available_providers
from src.parsing.structured import StructuredFieldExtractor
from src.pipeline.orchestrator import extract_job_content, score_candidate_against_jobs
from src.scraping.analyzer import build_error_message


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: built-in defaults)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def _add_provider(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=available_providers(),
        help="LLM provider (default: llm.provider from settings)",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job intake engine - extract, structure and match job postings",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- extract subcommand ---
    extract_parser = subparsers.add_parser(
        "extract", help="Extract job text from a posting URL",
    )
    extract_parser.add_argument("url", help="Job posting URL")
    extract_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full extraction result as JSON",
    )
    extract_parser.add_argument(
        "--provider",
        choices=available_providers(),
        help="Add a model-based extraction step using this LLM provider",
    )
    _add_common(extract_parser)

    # --- parse-job subcommand ---
    job_parser = subparsers.add_parser(
        "parse-job", help="Extract and structure a job posting",
    )
    source = job_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("url", nargs="?", help="Job posting URL")
    source.add_argument("--file", help="Read job text from a file instead of a URL")
    _add_provider(job_parser)
    _add_common(job_parser)

    # --- parse-resume subcommand ---
    resume_parser = subparsers.add_parser(
        "parse-resume", help="Structure a resume document (PDF, DOCX, TXT)",
    )
    resume_parser.add_argument("path", help="Path to resume file")
    _add_provider(resume_parser)
    _add_common(resume_parser)

    # --- match subcommand ---
    match_parser = subparsers.add_parser(
        "match", help="Score a resume against one or more job postings",
    )
    match_parser.add_argument("--resume", required=True, help="Path to resume file")
    match_parser.add_argument(
        "--job-url",
        action="append",
        required=True,
        dest="job_urls",
        help="Job posting URL (repeatable)",
    )
    match_parser.add_argument(
        "--no-llm",
        action="store_true",
        help="Use rule-based scoring only",
    )
    _add_provider(match_parser)
    _add_common(match_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_yaml(args.config) if args.config else Settings()
    provider = getattr(args, "provider", None)
    if provider:
        settings = settings.model_copy(
            update={"llm": settings.llm.model_copy(update={"provider": provider})},
        )
    if getattr(args, "no_llm", False):
        settings = settings.model_copy(
            update={"scoring": settings.scoring.model_copy(update={"llm_enabled": False})},
        )
    return settings


def _report_failure(result: ExtractionResult) -> None:
    if result.diagnosis is None:
        print(f"Error: no job text could be extracted from {result.url}", file=sys.stderr)
    else:
        print(build_error_message(result.diagnosis), file=sys.stderr)


def _require_extractor(ctx: PipelineContext) -> StructuredFieldExtractor:
    if ctx.extractor is None:
        msg = "This command requires an LLM provider; set llm.provider or --provider"
        raise JobIntakeError(msg)
    return ctx.extractor


async def cmd_extract(args: argparse.Namespace, ctx: PipelineContext) -> int:
    result = await extract_job_content(args.url, ctx)
    if args.json:
        print(result.model_dump_json(indent=2))
    elif result.succeeded:
        print(result.text)
    else:
        _report_failure(result)
    return 0 if result.succeeded else 2


async def cmd_parse_job(args: argparse.Namespace, ctx: PipelineContext) -> int:
    extractor = _require_extractor(ctx)
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
        source_url = None
    else:
        result = await extract_job_content(args.url, ctx)
        if not result.succeeded:
            _report_failure(result)
            return 2
        text, source_url = result.text, args.url

    job = await extractor.extract_job(text, source_url=source_url)
    print(job.model_dump_json(indent=2, exclude={"raw_text"}))
    return 1 if job.parse_error else 0


async def cmd_parse_resume(args: argparse.Namespace, ctx: PipelineContext) -> int:
    from src.documents.extractor import extract_document_text

    extractor = _require_extractor(ctx)
    text = extract_document_text(args.path)
    print(f"Extracted {len(text)} characters from {args.path}.", file=sys.stderr)
    resume = await extractor.extract_resume(text)
    print(resume.model_dump_json(indent=2, exclude={"raw_text"}))
    return 1 if resume.parse_error else 0


async def cmd_match(args: argparse.Namespace, ctx: PipelineContext) -> int:
    from src.documents.extractor import extract_document_text

    extractor = _require_extractor(ctx)
    resume = await extractor.extract_resume(extract_document_text(args.resume))
    if resume.parse_error:
        print(f"Error: resume could not be parsed: {resume.error_details}", file=sys.stderr)
        return 1

    jobs = []
    for url in args.job_urls:
        result = await extract_job_content(url, ctx)
        if not result.succeeded:
            print(f"Skipping {url}: extraction failed", file=sys.stderr)
            continue
        jobs.append(await extractor.extract_job(result.text, source_url=url))

    matches = await score_candidate_against_jobs(resume, jobs, ctx=ctx)
    print(json.dumps([m.model_dump(mode="json") for m in matches], indent=2))
    print(
        f"\n{len(matches)} of {len(jobs)} jobs scored at least "
        f"{ctx.settings.scoring.min_score}.",
        file=sys.stderr,
    )
    return 0


_COMMANDS = {
    "extract": cmd_extract,
    "parse-job": cmd_parse_job,
    "parse-resume": cmd_parse_resume,
    "match": cmd_match,
}


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Build the pipeline context for one CLI invocation and run the command."""
    use_provider = args.command != "extract" or bool(args.provider)
    async with PipelineContext.from_settings(settings, use_provider=use_provider) as ctx:
        return await _COMMANDS[args.command](args, ctx)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        code = asyncio.run(run(args, settings))
    except (FileNotFoundError, ImportError, ValueError, JobIntakeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
