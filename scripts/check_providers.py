"""
Live check of the configured search providers.

Runs the verification profiles below against the real APIs and prints how
many jobs each one finds and how many provider calls it used. Needs at
least one of SERPER_API_KEY, BRAVE_API_KEY or TAVILY_API_KEY.

Usage:
    python scripts/check_providers.py
"""

import asyncio
import time

from dotenv import load_dotenv

load_dotenv()

from jobmatch.agents.job_searcher import JobSearchEngine  # noqa: E402
from jobmatch.config import settings  # noqa: E402
from jobmatch.models import Profile  # noqa: E402

PROFILES = {
    "normal titles": Profile(
        job_titles=["Software Engineer", "Backend Developer"],
        skills=["Python", "Go"],
        location="Austin, TX",
    ),
    "empty titles, tech skills": Profile(skills=["Python", "JavaScript", "React", "AWS"]),
    "completely empty": Profile(),
    "non-tech": Profile(
        job_titles=["Registered Nurse"],
        skills=["Patient Care", "Epic"],
        industries=["Healthcare"],
        location="Chicago, IL",
    ),
    "no location": Profile(job_titles=["Product Manager"], skills=["Roadmaps", "SQL"]),
}


async def main():
    engine = JobSearchEngine.from_settings(settings)
    print("=" * 60)
    print(f"Providers: {[p.name for p in engine.providers]}, budget {engine.max_calls} calls")
    print("=" * 60)

    for name, profile in PROFILES.items():
        t0 = time.time()
        report = await engine.search(profile, max_results=settings.search_max_results)
        elapsed = time.time() - t0
        errors = sum(1 for call in report.calls if call.error)
        print(f"\n[{name}] seeds={report.seeds} ({report.seed_source})")
        print(f"  {len(report.jobs)} jobs, {report.calls_made} calls ({errors} errors) in {elapsed:.1f}s")
        for job in report.jobs[:3]:
            print(f"  - {job.title} @ {job.company} ({job.source.value})")


if __name__ == "__main__":
    asyncio.run(main())
