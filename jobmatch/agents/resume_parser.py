"""
Resume Parser.

Turns resume text into a structured Profile with one chat-model call.
Returns COMPACT output to minimize token usage.
"""

import logging

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_deepseek import ChatDeepSeek

from jobmatch.config import Settings, settings as default_settings
from jobmatch.errors import ConfigurationError, ResumeParserError
from jobmatch.models import Profile
from jobmatch.tools.pdf_parser import truncate_resume
from jobmatch.utils.parser import parse_profile_response

logger = logging.getLogger(__name__)

RESUME_PARSER_PROMPT = """You are a resume parser. Extract a COMPACT structured profile.

## Output Format (JSON only, no explanation)
```json
{
    "jobTitles": ["Senior Backend Engineer", "Software Engineer"],
    "skills": ["Python", "PostgreSQL", "AWS"],
    "yearsExperience": 6,
    "location": "Austin, TX",
    "industries": ["Fintech"],
    "education": "BSc Computer Science",
    "jobTypes": ["full-time", "remote"]
}
```

## Rules
- jobTitles: roles the person has held or targets, most recent/relevant first, MAX 5
- skills: TOP 15 skills most relevant for a job search
- yearsExperience: total years as a number, null if unknown
- location: "City, ST" when stated, else null
- jobTypes: only values from full-time, part-time, contract, remote
- If a field is not in the resume use null or an empty array; never invent titles
- Return ONLY the JSON, no other text
"""


class ResumeParser:
    """Extract a Profile from resume text with a chat model."""

    def __init__(self, model: BaseChatModel | None = None, settings: Settings = default_settings):
        self._model = model
        self._settings = settings

    def _get_model(self) -> BaseChatModel:
        if self._model is None:
            if not self._settings.deepseek_api_key:
                raise ConfigurationError("DEEPSEEK_API_KEY not set")
            self._model = ChatDeepSeek(
                model=self._settings.deepseek_model,
                api_key=self._settings.deepseek_api_key,
                temperature=0.1,
            )
        return self._model

    async def parse(self, resume_text: str) -> Profile:
        """
        Parse resume text into a Profile.

        Raises:
            ConfigurationError: no model credentials
            ResumeParserError: the model call failed or returned no JSON object
        """
        model = self._get_model()
        messages = [
            SystemMessage(content=RESUME_PARSER_PROMPT),
            HumanMessage(content=f"Resume content:\n\n{truncate_resume(resume_text)}"),
        ]

        try:
            reply = await model.ainvoke(messages)
        except Exception as e:
            raise ResumeParserError(f"Resume model error: {e}") from e

        content = reply.content if isinstance(reply.content, str) else str(reply.content)
        profile = parse_profile_response(content)
        if profile is None:
            logger.warning(f"Resume model returned no JSON object: {content[:200]!r}")
            raise ResumeParserError("Failed to read the parsed resume. Please try again.")

        if not profile.job_titles:
            logger.warning("Parsed resume has no job titles, search will infer them")
        return profile
