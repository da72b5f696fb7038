import string

import pytest

from rag.segment.chunker import chunk_document, chunk_text


def _text(n: int) -> str:
    letters = string.ascii_lowercase
    return "".join(letters[i % 26] for i in range(n))


def test_boundaries_with_default_window():
    text = _text(2500)
    chunks = list(chunk_text(text, chunk_size=1000, overlap=200))

    assert [(c["char_start"], c["char_end"]) for c in chunks] == [(0, 1000), (800, 1800), (1600, 2500)]
    for a, b in zip(chunks, chunks[1:]):
        assert b["char_start"] - a["char_start"] == 800
        assert a["text"][-200:] == b["text"][:200]


def test_every_character_is_covered():
    text = _text(2345)
    covered = set()
    for c in chunk_text(text, chunk_size=300, overlap=50):
        assert c["text"] == text[c["char_start"]:c["char_end"]]
        assert len(c["text"]) <= 300
        covered.update(range(c["char_start"], c["char_end"]))
    assert covered == set(range(len(text)))


def test_short_text_is_one_chunk():
    chunks = list(chunk_text("hello", chunk_size=1000, overlap=200))
    assert chunks == [{"text": "hello", "char_start": 0, "char_end": 5}]


def test_exact_multiple_does_not_emit_a_tail():
    chunks = list(chunk_text(_text(1000), chunk_size=1000, overlap=200))
    assert len(chunks) == 1


@pytest.mark.parametrize("size,overlap", [(0, 0), (100, -1), (100, 100), (100, 150)])
def test_invalid_windows_are_rejected(size, overlap):
    with pytest.raises(ValueError):
        list(chunk_text("abc", chunk_size=size, overlap=overlap))


def test_chunk_document_carries_metadata():
    docs = chunk_document(_text(250), {"source": "https://a.test", "title": "A"}, chunk_size=100, overlap=20)
    assert [d.metadata["chunk_index"] for d in docs] == [0, 1, 2]
    assert all(d.metadata["source"] == "https://a.test" for d in docs)
    assert docs[1].metadata["char_start"] == 80
    assert docs[-1].metadata["char_end"] == 250


@pytest.mark.parametrize("text", ["", "   \n\t "])
def test_blank_pages_produce_no_chunks(text):
    assert chunk_document(text, {"source": "x"}) == []
