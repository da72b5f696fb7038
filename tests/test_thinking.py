import pytest

from app.services.prompting import BEFORE_RAG_TEMPLATE, with_thinking
from app.services.thinking import extract_reasoning

LONG_INTRO = (
    "Let me think about this carefully. The user wants the capital of France "
    "and a short note on why it matters."
)


def test_tagged_block_is_split_out():
    out = extract_reasoning("<think>A</think>B")
    assert out.reasoning == "A"
    assert out.answer == "B"
    assert out.has_reasoning is True


def test_tags_are_case_insensitive_and_trimmed():
    out = extract_reasoning("<THINK>\n  step one\n</Think>\n\n  Final answer.  ")
    assert out.reasoning == "step one"
    assert out.answer == "Final answer."


def test_every_tagged_block_is_removed():
    out = extract_reasoning("<think>one</think>Hello <think>two</think>world")
    assert out.reasoning == "one\n\ntwo"
    assert "<think>" not in out.answer
    assert out.answer.startswith("Hello")
    assert out.answer.endswith("world")


def test_plain_text_has_no_reasoning():
    out = extract_reasoning("  Paris is the capital of France.  ")
    assert out.reasoning is None
    assert out.answer == "Paris is the capital of France."
    assert out.has_reasoning is False


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_empty_input(raw):
    out = extract_reasoning(raw)
    assert out.answer == ""
    assert out.has_reasoning is False


def test_long_intro_phrase_counts_as_reasoning():
    out = extract_reasoning(f"{LONG_INTRO}\n\nParis is the capital.")
    assert out.reasoning == LONG_INTRO
    assert out.answer == "Paris is the capital."
    assert out.has_reasoning is True


def test_short_intro_phrase_stays_in_answer():
    raw = "Let me think about this.\n\nParis."
    out = extract_reasoning(raw)
    assert out.has_reasoning is False
    assert out.answer == raw


def test_intro_rule_only_runs_without_tags():
    raw = f"{LONG_INTRO}\n\n<think>tagged</think>Answer."
    out = extract_reasoning(raw)
    # the tagged block is taken first; the intro then splits off on the next pass
    assert out.reasoning.startswith("tagged")
    assert out.answer == "Answer."


def test_min_reasoning_chars_is_configurable():
    out = extract_reasoning("I need to consider units.\n\n42", min_reasoning_chars=5)
    assert out.reasoning == "I need to consider units."
    assert out.answer == "42"


@pytest.mark.parametrize(
    "raw",
    [
        "<think>A</think>B",
        f"<think>a</think>{LONG_INTRO}\n\nAnswer",
        f"{LONG_INTRO}\n\nThinking through this one more time, with extra detail so it is long.\n\nDone.",
        "Just an answer.",
        "<think></think>",
    ],
)
def test_extraction_is_idempotent(raw):
    first = extract_reasoning(raw)
    second = extract_reasoning(first.answer)
    assert second.answer == first.answer
    assert second.has_reasoning is False


def test_with_thinking_appends_instructions():
    template = with_thinking(BEFORE_RAG_TEMPLATE, True, "Explain {carefully}.")
    assert template.startswith(BEFORE_RAG_TEMPLATE)
    assert "Explain {{carefully}}." in template
    assert "<think>" in template
    assert with_thinking(BEFORE_RAG_TEMPLATE, False) == BEFORE_RAG_TEMPLATE
