from __future__ import annotations
import json, re, logging
from typing import Any, Optional

from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from . import config
from .schemas import Analysis, ArticleRecord

log = logging.getLogger("uvicorn.error")

_FENCE_RE = re.compile(r"```json\n?|\n?```")

SYSTEM_MSG = (
    "You are a professional media literacy expert and fact-checker. "
    "You answer with a single JSON object and nothing else."
)

_SCHEMA = """{
  "claims": [
    {
      "claim": "string - main factual assertion",
      "confidence": "High|Medium|Low",
      "evidence": "string - supporting evidence found",
      "type": "Factual|Opinion|Statistical"
    }
  ],
  "tone": {
    "overall": "string - overall tone assessment",
    "sentiment": "Positive|Negative|Neutral",
    "objectivity": number (1-10 scale),
    "emotionalLanguage": ["array of emotional words used"],
    "biasIndicators": ["array of potential bias indicators"]
  },
  "redFlags": [
    {
      "flag": "string - red flag type",
      "severity": "High|Medium|Low",
      "description": "string - explanation"
    }
  ],
  "verificationQuestions": ["array of 5 critical questions readers should ask"],
  "entities": {
    "people": ["array of people mentioned"],
    "organizations": ["array of organizations"],
    "locations": ["array of locations"],
    "topics": ["array of main topics/themes"]
  },
  "counterArguments": [
    {
      "argument": "string - alternative perspective",
      "reasoning": "string - why this perspective matters"
    }
  ],
  "credibilityScore": number (1-10 scale),
  "recommendations": ["array of 4-5 actionable recommendations for readers"]
}"""

_FOCUS = """Focus on:
1. Identifying specific factual claims that can be verified
2. Detecting emotional language and potential bias
3. Recognizing missing perspectives or information gaps
4. Providing actionable verification steps
5. Assessing overall credibility based on journalistic standards

Return only valid JSON without any markdown formatting or additional text."""


class AnalysisUnavailable(RuntimeError):
    pass

class AnalysisParseError(ValueError):
    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


def build_prompt(article: ArticleRecord, max_chars: Optional[int] = None) -> str:
    max_chars = max_chars or config.ANALYSIS_MAX_CHARS
    lines = [
        "Analyze the following news article and provide a comprehensive analysis in JSON format.",
        "",
        f"Article Title: {article.title}",
        f"Article Content: {article.content[:max_chars]}",
    ]
    if article.author:
        lines.append(f"Author: {article.author}")
    lines += ["", "Please provide analysis in this exact JSON structure:", _SCHEMA, "", _FOCUS]
    return "\n".join(lines)


def parse_analysis(text: str) -> Analysis:
    """Parses the model reply, tolerating ```json fences around it."""
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise AnalysisParseError(f"reply is not JSON: {e}", raw=text) from e
    if not isinstance(data, dict):
        raise AnalysisParseError("reply is not a JSON object", raw=text)
    try:
        return Analysis.model_validate(data)
    except ValidationError as e:
        raise AnalysisParseError(f"reply does not match the analysis schema: {e}", raw=text) from e


def _transient_errors() -> tuple:
    import openai
    return (openai.APIConnectionError, openai.APITimeoutError,
            openai.RateLimitError, openai.InternalServerError)


def _complete(client: Any, prompt: str) -> str:
    @retry(
        retry=retry_if_exception_type(_transient_errors()),
        stop=stop_after_attempt(config.LLM_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    def _call() -> str:
        resp = client.chat.completions.create(
            model=config.ANALYSIS_MODEL,
            temperature=config.ANALYSIS_TEMPERATURE,
            messages=[
                {"role": "system", "content": SYSTEM_MSG},
                {"role": "user", "content": prompt},
            ],
        )
        return resp.choices[0].message.content or ""
    return _call()


def analyze_article(article: ArticleRecord, client: Any = None) -> Analysis:
    """
    Sends the article to the LLM and returns its structured analysis.
    `client` is anything exposing `chat.completions.create` (an OpenAI client by default).
    """
    if not article.title or not article.content:
        raise ValueError("Article data is required")

    if client is None:
        if not config.OPENAI_API_KEY:
            raise AnalysisUnavailable("OPENAI_API_KEY environment variable is required")
        from openai import OpenAI
        client = OpenAI(api_key=config.OPENAI_API_KEY)

    raw = _complete(client, build_prompt(article))
    try:
        return parse_analysis(raw)
    except AnalysisParseError:
        log.warning(f"failed to parse LLM analysis; raw reply: {raw[:500]!r}")
        raise
