"""
Title inference.

Proposes job titles to search for when a resume yields none, from the
profile's skills, industries and years of experience.
"""

import re
from abc import ABC, abstractmethod

from jobmatch.models import Profile

GENERIC_TITLES: tuple[str, ...] = ("Software Engineer", "Developer", "Engineer")

# (keywords, titles) in priority order; keywords match on word boundaries
DEFAULT_RULES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("react", "node", "node.js", "nodejs", "next.js", "full stack", "fullstack"), ("Full Stack Developer",)),
    (("javascript", "typescript", "vue", "angular", "frontend", "front end", "css"), ("Frontend Developer",)),
    (("aws", "docker", "kubernetes", "terraform", "devops", "ci/cd", "gcp", "azure"), ("DevOps Engineer", "Cloud Engineer")),
    (("machine learning", "ml", "pytorch", "tensorflow", "deep learning", "nlp", "ai"), ("Machine Learning Engineer",)),
    (("data science", "pandas", "statistics", "data analysis", "tableau", "sql"), ("Data Scientist", "Data Analyst")),
    (("spark", "airflow", "etl", "data engineering", "kafka", "snowflake"), ("Data Engineer",)),
    (("python", "django", "flask", "fastapi"), ("Python Developer", "Backend Engineer")),
    (("java", "spring", "kotlin", "scala"), ("Java Developer", "Backend Engineer")),
    (("go", "golang", "rust", "c++", "microservices"), ("Backend Engineer",)),
    (("ios", "swift", "android", "react native", "flutter", "mobile"), ("Mobile Developer",)),
    (("security", "cybersecurity", "penetration testing", "siem"), ("Security Engineer",)),
    (("qa", "selenium", "cypress", "test automation"), ("QA Engineer",)),
    (("figma", "ux", "ui design", "user research"), ("Product Designer", "UX Designer")),
    (("product management", "roadmap", "product strategy"), ("Product Manager",)),
    (("healthcare", "nursing", "patient care", "clinical"), ("Registered Nurse", "Healthcare Coordinator")),
    (("finance", "accounting", "financial modeling", "excel"), ("Financial Analyst", "Accountant")),
    (("marketing", "seo", "content marketing", "social media"), ("Marketing Manager", "Marketing Specialist")),
    (("sales", "crm", "salesforce", "business development"), ("Account Executive", "Sales Representative")),
    (("education", "teaching", "curriculum"), ("Teacher", "Instructional Designer")),
    (("customer support", "customer service", "zendesk"), ("Customer Support Specialist",)),
    (("recruiting", "human resources", "talent acquisition"), ("Recruiter", "HR Generalist")),
    (("software", "programming", "computer science", "technology"), ("Software Engineer",)),
)

LEADERSHIP_TITLES: tuple[str, ...] = ("Engineering Manager", "Tech Lead")

_SENIOR_PREFIXES = ("senior ", "lead ", "principal ", "staff ")


class TitleInferenceStrategy(ABC):
    """Something that can propose search titles for a profile."""

    @abstractmethod
    def infer(self, profile: Profile) -> list[str]:
        """Return candidate titles, most relevant first. May be empty."""
        raise NotImplementedError


def _keyword_pattern(keyword: str) -> re.Pattern:
    # \b does not work next to symbols such as "c++" or "node.js"
    return re.compile(r"(?<![\w])" + re.escape(keyword) + r"(?![\w])", re.IGNORECASE)


class KeywordTitleInference(TitleInferenceStrategy):
    """
    Keyword table over skills and industries.

    Experienced profiles (``senior_years`` or more) get "Senior" variants
    first, followed by the leadership titles, then the plain titles.
    """

    def __init__(
        self,
        rules: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = DEFAULT_RULES,
        max_titles: int = 10,
        senior_years: int = 8,
    ):
        self.max_titles = max_titles
        self.senior_years = senior_years
        self._rules = [
            ([_keyword_pattern(k) for k in keywords], titles)
            for keywords, titles in rules
        ]

    def _matched_titles(self, profile: Profile) -> list[str]:
        terms = [t for t in profile.skills + profile.industries if t.strip()]
        titles: list[str] = []
        for patterns, rule_titles in self._rules:
            if any(p.search(term) for p in patterns for term in terms):
                for title in rule_titles:
                    if title not in titles:
                        titles.append(title)
        return titles

    def infer(self, profile: Profile) -> list[str]:
        base = self._matched_titles(profile)
        if not base:
            return []

        years = profile.years_experience
        if years is not None and years >= self.senior_years:
            senior = [
                title if title.lower().startswith(_SENIOR_PREFIXES) else f"Senior {title}"
                for title in base
            ]
            ordered = senior + list(LEADERSHIP_TITLES) + base
        else:
            ordered = base

        result: list[str] = []
        for title in ordered:
            if title not in result:
                result.append(title)
        return result[: self.max_titles]
