import json

import pytest

from models.errors import QuestionSetError
from models.question import Question, load_questions, parse_questions, questions_to_dict


def test_questions_keep_file_order(tmp_path):
    path = tmp_path / "questions.json"
    path.write_text(
        json.dumps({"02": "Podaj adres mailowy", "01": " What is the URL? "}, ensure_ascii=False),
        encoding="utf-8",
    )

    questions = load_questions(path)

    assert questions == [Question("02", "Podaj adres mailowy"), Question("01", "What is the URL?")]
    assert questions_to_dict(questions) == {"02": "Podaj adres mailowy", "01": "What is the URL?"}


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(QuestionSetError, match="not found"):
        load_questions(tmp_path / "nope.json")


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "{}",
        '["01", "02"]',
        '{"01": ""}',
        '{" ": "Who?"}',
        '{"01": 5}',
    ],
)
def test_malformed_sets_are_rejected(payload):
    with pytest.raises(QuestionSetError):
        parse_questions(payload)
