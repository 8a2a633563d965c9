"""
AI-powered resume parser using an LLM for structured extraction
"""
import json
from typing import Any, Dict, Optional

import openai
import structlog

from talent.core.config import settings
from talent.core.redis_client import get_cache, get_cache_key, set_cache, text_fingerprint
from talent.resumes.parser import (
    ResumeTextExtractor,
    RuleBasedResumeParser,
    StoredResumeParser,
    build_parsing_result,
)
from talent.resumes.ports import FileStoragePort, ParsingResult

logger = structlog.get_logger()

SYSTEM_PROMPT = (
    "You are a resume parser. Extract the candidate's information and return ONLY valid JSON, "
    "no markdown, no explanations, no code blocks."
)

EXTRACTION_PROMPT = """Extract the following fields from the resume below and return a JSON object:

{{
  "name": "candidate full name",
  "email": "email address or null",
  "phone": "phone number or null",
  "address": "postal address or null",
  "skills": [{{"name": "skill", "level": "BEGINNER|INTERMEDIATE|ADVANCED|EXPERT", "years": 3}}],
  "experience": [{{"company": "", "position": "", "start_date": "YYYY-MM", "end_date": "YYYY-MM or null if current", "description": ""}}],
  "education": [{{"school": "", "degree": "", "major": "", "graduation_date": "YYYY-MM", "gpa": 3.8}}]
}}

Use null for unknown values and never invent information.

Resume:
{text}"""


def _strip_code_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


class AIResumeParser(StoredResumeParser):
    """LLM extraction with rule-based fallback; results cached by text fingerprint"""

    def __init__(
        self,
        storage: FileStoragePort,
        extractor: Optional[ResumeTextExtractor] = None,
        client: Optional[Any] = None,
        fallback: Optional[RuleBasedResumeParser] = None,
    ):
        super().__init__(storage, extractor)
        self.client = client if client is not None else self._create_client()
        self.fallback = fallback or RuleBasedResumeParser(storage, self.extractor)

    def _create_client(self):
        if not settings.OPENAI_API_KEY or settings.AI_PROVIDER not in ("openai", "auto"):
            return None
        try:
            client = openai.OpenAI(api_key=settings.OPENAI_API_KEY)
            logger.info("openai_client_initialized")
            return client
        except Exception as e:
            logger.warning("openai_client_init_failed", error=str(e))
            return None

    def parse_text(self, raw_text: str) -> ParsingResult:
        if not raw_text or not raw_text.strip():
            return self.fallback.parse_text(raw_text)
        if self.client is None:
            return self.fallback.parse_text(raw_text)

        cache_key = get_cache_key("ai_parse", "resume", text_fingerprint(raw_text))
        cached = get_cache(cache_key)
        if cached:
            logger.info("using_cached_ai_parse")
            return build_parsing_result(cached, raw_text)

        try:
            data = self._extract_with_openai(raw_text)
        except (openai.OpenAIError, json.JSONDecodeError, ValueError) as e:
            logger.warning("ai_parsing_failed_fallback", error=str(e))
            return self.fallback.parse_text(raw_text)

        set_cache(cache_key, data, ttl=3600 * 24)
        return build_parsing_result(data, raw_text)

    def _extract_with_openai(self, text: str) -> Dict[str, Any]:
        response = self.client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": EXTRACTION_PROMPT.format(text=text)},
            ],
            temperature=settings.AI_TEMPERATURE,
            max_tokens=settings.AI_MAX_TOKENS,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or ""
        parsed = json.loads(_strip_code_fences(content))
        if not isinstance(parsed, dict):
            raise ValueError("Model did not return a JSON object")
        logger.info(
            "openai_parsing_success",
            skills_count=len(parsed.get("skills") or []),
            exp_count=len(parsed.get("experience") or []),
        )
        return parsed


def create_resume_parser(storage: FileStoragePort) -> StoredResumeParser:
    """Parser for the configured AI provider"""
    if settings.AI_PROVIDER == "rules":
        return RuleBasedResumeParser(storage)
    return AIResumeParser(storage)
