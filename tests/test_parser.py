from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from jobmatch.agents.resume_parser import ResumeParser
from jobmatch.config import Settings
from jobmatch.errors import ConfigurationError, ResumeParserError, ResumeValidationError
from jobmatch.tools.pdf_parser import extract_pdf_text, truncate_resume, validate_resume_text
from jobmatch.utils.parser import extract_json, normalize_profile, parse_profile_response
from tests.conftest import run

RESUME = (
    "Jane Doe\nSenior Backend Engineer\n\nExperience\nAcme Corp, 2018-2024: built payment APIs in Python.\n"
    "Skills\nPython, PostgreSQL, AWS\nEducation\nBSc Computer Science, State University"
)


@pytest.mark.unit
def test_extract_json_clean():
    assert extract_json('{"skills": ["Python"]}') == {"skills": ["Python"]}


@pytest.mark.unit
def test_extract_json_fenced_block():
    text = 'Here you go:\n```json\n{"jobTitles": ["Engineer"]}\n```\nThanks'
    assert extract_json(text) == {"jobTitles": ["Engineer"]}


@pytest.mark.unit
def test_extract_json_embedded_in_prose_with_braces_in_strings():
    text = 'Result: {"location": "Austin {TX}", "skills": []} -- end'
    assert extract_json(text) == {"location": "Austin {TX}", "skills": []}


@pytest.mark.unit
def test_extract_json_nothing():
    assert extract_json("no json here") is None
    assert extract_json("") is None


@pytest.mark.unit
def test_normalize_profile_camel_case():
    profile = normalize_profile(
        {
            "jobTitles": ["Data Scientist", "", "  ML Engineer "],
            "skills": "Python, SQL; Spark",
            "yearsExperience": "7+ years",
            "location": "null",
            "jobTypes": ["Full Time", "remote", "internship"],
        }
    )
    assert profile.job_titles == ["Data Scientist", "ML Engineer"]
    assert profile.skills == ["Python", "SQL", "Spark"]
    assert profile.years_experience == 7
    assert profile.location is None
    assert profile.job_types == ["full-time", "remote"]


@pytest.mark.unit
def test_normalize_profile_snake_case_and_bad_values():
    profile = normalize_profile({"job_titles": ["Nurse"], "years_experience": -3, "industries": None})
    assert profile.job_titles == ["Nurse"]
    assert profile.years_experience is None
    assert profile.industries == []


@pytest.mark.unit
def test_parse_profile_response_requires_object():
    assert parse_profile_response('["just", "a", "list"]') is None
    assert parse_profile_response('{"skills": ["Go"]}').skills == ["Go"]


@pytest.mark.unit
def test_validate_resume_text():
    validate_resume_text(RESUME)

    with pytest.raises(ResumeValidationError, match="insufficient content"):
        validate_resume_text("")
    with pytest.raises(ResumeValidationError, match="too short"):
        validate_resume_text("Experience: lots")
    with pytest.raises(ResumeValidationError, match="insufficient content"):
        validate_resume_text("lorem ipsum dolor sit amet " * 5)


@pytest.mark.unit
def test_unreadable_pdf():
    with pytest.raises(ResumeValidationError, match="unreadable format"):
        extract_pdf_text(b"this is not a pdf at all")


@pytest.mark.unit
def test_truncate_resume_keeps_short_text():
    assert truncate_resume(RESUME) == RESUME


@pytest.mark.unit
def test_truncate_resume_drops_references():
    filler = "\n".join(f"line {i}" for i in range(60))
    text = f"{filler}\nExperience\n" + "Built things.\n" * 400 + "References\nAvailable on request"
    result = truncate_resume(text, max_chars=1000)
    assert len(result) <= 1000 + len("\n[truncated]")
    assert "Available on request" not in result


@pytest.mark.unit
def test_resume_parser_reads_model_reply():
    model = FakeListChatModel(
        responses=['```json\n{"jobTitles": ["Backend Engineer"], "skills": ["Python"], "yearsExperience": 6}\n```']
    )
    profile = run(ResumeParser(model=model).parse(RESUME))
    assert profile.job_titles == ["Backend Engineer"]
    assert profile.years_experience == 6


@pytest.mark.unit
def test_resume_parser_missing_titles_is_not_an_error():
    model = FakeListChatModel(responses=['{"jobTitles": [], "skills": ["Excel"]}'])
    profile = run(ResumeParser(model=model).parse(RESUME))
    assert profile.job_titles == []
    assert profile.skills == ["Excel"]


@pytest.mark.unit
def test_resume_parser_garbage_reply():
    model = FakeListChatModel(responses=["Sorry, I cannot help with that."])
    with pytest.raises(ResumeParserError):
        run(ResumeParser(model=model).parse(RESUME))


@pytest.mark.unit
def test_resume_parser_model_outage():
    model = MagicMock()
    model.ainvoke = AsyncMock(side_effect=TimeoutError("upstream timeout"))
    with pytest.raises(ResumeParserError, match="upstream timeout"):
        run(ResumeParser(model=model).parse(RESUME))


@pytest.mark.unit
def test_resume_parser_without_credentials():
    parser = ResumeParser(settings=Settings(_env_file=None, deepseek_api_key=""))
    with pytest.raises(ConfigurationError):
        run(parser.parse(RESUME))
