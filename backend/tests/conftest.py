import pytest

from app.services.question_import import HeaderResolver


@pytest.fixture
def resolve_mapping():
    def _resolve(headers):
        validation = HeaderResolver().resolve(headers)
        assert validation.valid, validation.warnings
        return validation.mapped_headers

    return _resolve


@pytest.fixture
def standard_headers():
    return ["question", "option_a", "option_b", "option_c", "option_d", "correct_answer"]


class FakeQuestionStore:
    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.inserted = []

    async def insert_questions(self, rows):
        if self.fail_with:
            raise self.fail_with
        self.inserted.extend(rows)
        return len(rows)


@pytest.fixture
def fake_store():
    return FakeQuestionStore()


@pytest.fixture
def failing_store():
    return FakeQuestionStore(fail_with=RuntimeError("connection reset"))
