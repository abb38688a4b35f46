"""Question extraction from unstructured document text"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import backoff
from openai import (
    APIConnectionError,
    AsyncOpenAI,
    InternalServerError,
    OpenAIError,
    RateLimitError,
)

from app.core.config import settings
from .types import ExtractionError

logger = logging.getLogger(__name__)

QUESTION_START = re.compile(r"^\s*\d+\.\s*")
OPTION_LINE = re.compile(r"^\s*([A-Da-d])[\)\.]\s*")
ANSWER_LINE = re.compile(r"\b(?:answer|ans)\s*:\s*\(?([A-Da-d])\b", re.IGNORECASE)
CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")

EXTRACTION_PROMPT = """
Extract multiple-choice questions from the following text.

Each question has:
- A question statement
- Four options labeled A, B, C, D
- Sometimes an explicit correct answer

Return ONLY valid JSON in this format:
[
  {{
    "question": "",
    "option_a": "",
    "option_b": "",
    "option_c": "",
    "option_d": "",
    "correct_option": "A | B | C | D | null"
  }}
]

Text:
{text}"""


def _empty_candidate(question: str) -> Dict[str, Any]:
    return {
        "question": question,
        "option_a": "",
        "option_b": "",
        "option_c": "",
        "option_d": "",
        "correct_option": None,
    }


class HeuristicQuestionExtractor:
    """Line scanner for numbered questions with lettered options"""

    async def extract(self, text: str) -> List[Dict[str, Any]]:
        return self.scan(text)

    @staticmethod
    def scan(text: str) -> List[Dict[str, Any]]:
        """
        Scan text line by line.

        "1. ..." opens a question, "A." / "a)" through "D." fill its options
        and "Answer: B" or "Ans: b" sets the correct option. Lines before the
        first numbered question are ignored.
        """
        questions: List[Dict[str, Any]] = []
        current: Optional[Dict[str, Any]] = None

        for line in (text or "").splitlines():
            if not line.strip():
                continue

            if QUESTION_START.match(line):
                if current:
                    questions.append(current)
                current = _empty_candidate(QUESTION_START.sub("", line).strip())
                continue

            if current is None:
                continue

            option_match = OPTION_LINE.match(line)
            if option_match:
                field = f"option_{option_match.group(1).lower()}"
                current[field] = OPTION_LINE.sub("", line).strip()
                continue

            answer_match = ANSWER_LINE.search(line)
            if answer_match:
                current["correct_option"] = answer_match.group(1).upper()

        if current:
            questions.append(current)

        logger.info(f"Heuristic extraction found {len(questions)} candidate questions")
        return questions


class OpenAIQuestionExtractor:
    """Chat-completion backed extractor"""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        self.model = settings.CHAT_MODEL
        self.text_limit = settings.EXTRACTION_TEXT_LIMIT
        self.timeout = settings.EXTRACTION_TIMEOUT

    async def extract(self, text: str) -> List[Dict[str, Any]]:
        # TODO: chunk long documents instead of truncating at EXTRACTION_TEXT_LIMIT
        prompt = EXTRACTION_PROMPT.format(text=(text or "")[:self.text_limit])
        logger.info(f"Requesting question extraction for {len(text or '')} characters with model {self.model}")

        try:
            content = await self._complete(prompt)
        except asyncio.TimeoutError as e:
            raise ExtractionError(f"Question extraction timed out after {self.timeout}s") from e
        except OpenAIError as e:
            logger.error(f"OpenAI extraction request failed: {e}")
            raise ExtractionError(f"Question extraction request failed: {e}") from e

        return self.parse_response(content)

    @backoff.on_exception(
        backoff.expo,
        # Transient failures only; auth and other 4xx errors fail fast
        (RateLimitError, InternalServerError, APIConnectionError, asyncio.TimeoutError),
        max_tries=3,
        base=2,
        max_value=60
    )
    async def _complete(self, prompt: str) -> str:
        messages = [
            {"role": "system", "content": "You extract exam questions from documents. Respond with JSON only."},
            {"role": "user", "content": prompt}
        ]
        response = await asyncio.wait_for(
            self.client.chat.completions.create(model=self.model, messages=messages),
            timeout=self.timeout
        )
        return response.choices[0].message.content or ""

    @staticmethod
    def parse_response(content: str) -> List[Dict[str, Any]]:
        cleaned = CODE_FENCE.sub("", (content or "").strip())
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Extractor returned invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise ExtractionError("Extractor response is not a JSON list")

        return data


def get_question_extractor():
    """Extractor selected by EXTRACTION_MODE"""
    if settings.EXTRACTION_MODE == "openai":
        return OpenAIQuestionExtractor()
    return HeuristicQuestionExtractor()
