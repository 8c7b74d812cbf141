"""
JobMatch - CLI Entry Point.

Parse a resume and run the job search without the web flow (no payment,
no email). Useful for checking provider credentials and search quality.

Usage:
    python main.py resume.pdf [--max-results 25] [--json]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from jobmatch.agents.job_searcher import JobSearchEngine  # noqa: E402
from jobmatch.agents.resume_parser import ResumeParser  # noqa: E402
from jobmatch.config import settings  # noqa: E402
from jobmatch.errors import JobMatchError  # noqa: E402
from jobmatch.tools.pdf_parser import extract_pdf_text_from_path, validate_resume_text  # noqa: E402


async def run(cv_path: Path, max_results: int, as_json: bool) -> int:
    resume_text = extract_pdf_text_from_path(str(cv_path))
    validate_resume_text(resume_text)
    print(f"Extracted {len(resume_text)} chars from {cv_path.name}")

    profile = await ResumeParser(settings=settings).parse(resume_text)
    print(f"Titles: {', '.join(profile.job_titles) or '(none)'}")
    print(f"Skills: {', '.join(profile.skills[:10]) or '(none)'}")
    print(f"Location: {profile.location or '(none)'}")

    engine = JobSearchEngine.from_settings(settings)
    report = await engine.search(profile, max_results=max_results)

    if as_json:
        print(json.dumps(
            {
                "seeds": report.seeds,
                "seed_source": report.seed_source,
                "calls": [call.to_dict() for call in report.calls],
                "jobs": [job.model_dump(mode="json") for job in report.jobs],
            },
            indent=2,
        ))
        return 0

    print(f"\nSeeds ({report.seed_source}): {', '.join(report.seeds)}")
    print("-" * 40)
    for call in report.calls:
        status = f"error: {call.error}" if call.error else f"{call.results} results, {call.new_jobs} new"
        print(f"  [{call.phase}] {call.provider} '{call.query}': {status}")

    print(f"\n{len(report.jobs)} jobs")
    print("-" * 40)
    for i, job in enumerate(report.jobs, 1):
        salary = f" | {job.salary}" if job.salary else ""
        print(f"{i:2}. {job.title} - {job.company} ({job.location}){salary}")
        print(f"    {job.url}")
    return 0


def main():
    """Run the JobMatch CLI."""
    parser = argparse.ArgumentParser(description="Parse a resume and search for matching jobs")
    parser.add_argument("resume", help="Path to a PDF resume")
    parser.add_argument("--max-results", type=int, default=settings.search_max_results)
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    cv_path = Path(args.resume)
    if not cv_path.exists() or cv_path.suffix.lower() != ".pdf":
        print(f"Error: {cv_path} is not a valid PDF")
        sys.exit(1)

    try:
        sys.exit(asyncio.run(run(cv_path, args.max_results, args.json)))
    except JobMatchError as e:
        print(f"Error: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
