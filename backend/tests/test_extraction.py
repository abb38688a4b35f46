import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from app.core.config import settings
from app.services.question_import import (
    ExtractionError,
    HeuristicQuestionExtractor,
    OpenAIQuestionExtractor,
    get_question_extractor,
)

SAMPLE_TEXT = """
Physics Unit Test
1. What is the unit of force?
A. Joule
B) Newton
c. Watt
D. Pascal
Answer: B

2. Speed of light is closest to?
A. 3 x 10^8 m/s
B. 3 x 10^5 m/s
C. 340 m/s
d) 1 m/s
"""


class _FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_client(content):
    completions = _FakeCompletions(content)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_heuristic_scan_extracts_numbered_questions():
    questions = HeuristicQuestionExtractor.scan(SAMPLE_TEXT)

    assert len(questions) == 2
    assert questions[0] == {
        "question": "What is the unit of force?",
        "option_a": "Joule",
        "option_b": "Newton",
        "option_c": "Watt",
        "option_d": "Pascal",
        "correct_option": "B",
    }
    assert questions[1]["option_d"] == "1 m/s"
    assert questions[1]["correct_option"] is None


def test_heuristic_answer_letter_follows_the_colon():
    questions = HeuristicQuestionExtractor.scan("1. Q?\nA. x\nB. y\nC. z\nD. w\nCorrect answer: (c)")

    assert questions[0]["correct_option"] == "C"


def test_heuristic_ignores_preamble_and_empty_text():
    assert HeuristicQuestionExtractor.scan("A. orphan option\nAnswer: A") == []
    assert HeuristicQuestionExtractor.scan("") == []


def test_heuristic_extract_is_awaitable():
    questions = asyncio.run(HeuristicQuestionExtractor().extract(SAMPLE_TEXT))

    assert len(questions) == 2


def test_openai_response_parsing_tolerates_code_fences():
    content = '```json\n[{"question": "Q", "option_a": "1", "correct_option": null}]\n```'

    assert OpenAIQuestionExtractor.parse_response(content) == [
        {"question": "Q", "option_a": "1", "correct_option": None}
    ]


def test_openai_response_must_be_a_json_list():
    with pytest.raises(ExtractionError):
        OpenAIQuestionExtractor.parse_response("Sorry, I cannot help with that.")
    with pytest.raises(ExtractionError):
        OpenAIQuestionExtractor.parse_response('{"question": "Q"}')


def test_openai_extract_truncates_text(monkeypatch):
    monkeypatch.setattr(settings, "EXTRACTION_TEXT_LIMIT", 10)
    client, completions = _fake_client('[{"question": "Q"}]')

    questions = asyncio.run(OpenAIQuestionExtractor(client=client).extract("0123456789-tail"))

    assert questions == [{"question": "Q"}]
    prompt = completions.calls[0]["messages"][-1]["content"]
    assert prompt.endswith("0123456789")
    assert completions.calls[0]["model"] == settings.CHAT_MODEL


def test_get_question_extractor_follows_mode(monkeypatch):
    monkeypatch.setattr(settings, "EXTRACTION_MODE", "heuristic")
    assert isinstance(get_question_extractor(), HeuristicQuestionExtractor)

    monkeypatch.setattr(settings, "EXTRACTION_MODE", "openai")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    assert isinstance(get_question_extractor(), OpenAIQuestionExtractor)


class _FailingCompletions:
    def __init__(self, errors, content='[{"question": "Q"}]'):
        self.errors = list(errors)
        self.content = content
        self.calls = 0

    async def create(self, **kwargs):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _status_error(error_class, status_code):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return error_class("request failed", response=response, body=None)


def test_openai_auth_error_is_not_retried():
    completions = _FailingCompletions([_status_error(openai.AuthenticationError, 401)])
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    with pytest.raises(ExtractionError, match="request failed"):
        asyncio.run(OpenAIQuestionExtractor(client=client).extract("1. Q"))

    assert completions.calls == 1


def test_openai_server_error_is_retried():
    completions = _FailingCompletions([_status_error(openai.InternalServerError, 500)])
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    questions = asyncio.run(OpenAIQuestionExtractor(client=client).extract("1. Q"))

    assert questions == [{"question": "Q"}]
    assert completions.calls == 2
