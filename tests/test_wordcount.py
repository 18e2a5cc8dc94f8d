import socket
import threading
import time

import pytest

from distwork.wordcount import (
    SAMPLE_TEXT,
    ChunkSplitter,
    WordTable,
    count_words,
    encode_frequencies,
    normalize_word,
    run_client,
    run_server,
)


def _free_port():
    with socket.socket() as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


def _client_with_retry(port):
    for _ in range(100):
        try:
            return run_client("127.0.0.1", port)
        except ConnectionRefusedError:
            time.sleep(0.05)
    raise AssertionError("server never came up")


def test_normalize_word_lowercases_and_strips():
    assert normalize_word("Hello!") == "hello"
    assert normalize_word("snake_case") == "snake_case"
    assert normalize_word("***") == ""


def test_count_words_is_case_insensitive():
    assert count_words("The the THE") == {"the": 3}


def test_count_words_splits_on_apostrophe_and_hyphen():
    assert count_words("don't foo-bar") == {"don": 1, "t": 1, "foo": 1, "bar": 1}


def test_count_words_keeps_first_appearance_order():
    assert list(count_words("b a b c a")) == ["b", "a", "c"]


def test_count_words_stops_at_limit():
    assert count_words("a b c a", limit=2) == {"a": 1, "b": 1}


def test_count_words_empty():
    assert count_words(" ,.;  ") == {}


def test_encode_frequencies_format():
    assert encode_frequencies({"a": 2, "b": 1}) == "2 a 2 b 1 "
    assert encode_frequencies({}) == "0 "


def test_word_table_merges_counts():
    table = WordTable()
    table.merge("2 a 3 b 1 ")
    table.merge("1 a 2 ")
    assert table.counts == {"a": 5, "b": 1}
    assert table.top(1) == [("a", 5)]


def test_word_table_respects_capacity():
    table = WordTable(1)
    table.merge("2 a 1 b 1 ")
    table.merge("1 a 4 ")
    assert table.counts == {"a": 5}


def test_word_table_stops_at_truncated_pair():
    table = WordTable()
    table.merge("3 a 1 b")
    assert table.counts == {"a": 1}


def test_word_table_round_trip():
    frequencies = count_words(SAMPLE_TEXT)
    table = WordTable()
    table.merge(encode_frequencies(frequencies))
    assert table.counts == frequencies


def test_word_table_top_is_sorted_descending():
    table = WordTable()
    table.merge(encode_frequencies(count_words(SAMPLE_TEXT)))
    ranked = table.top(10)
    assert len(ranked) == 10
    counts = [count for _, count in ranked]
    assert counts == sorted(counts, reverse=True)
    assert counts[0] == max(table.counts.values())


def test_splitter_small_text_is_one_chunk():
    splitter = ChunkSplitter(SAMPLE_TEXT, 10)
    assert splitter.next_chunk() == (0, len(SAMPLE_TEXT))
    assert splitter.next_chunk() is None


def test_splitter_empty_text():
    assert ChunkSplitter("", 10).next_chunk() is None


def test_splitter_rejects_zero_parts():
    with pytest.raises(ValueError):
        ChunkSplitter("text", 0)


def test_splitter_chunks_end_on_whitespace():
    content = "word " * 250
    splitter = ChunkSplitter(content, 10)
    spans = list(iter(splitter.next_chunk, None))
    assert len(spans) == len(content) // splitter.chunk_size
    assert spans[0][0] == 0
    assert spans[-1][1] == len(content)
    assert [start % splitter.chunk_size for start, _ in spans] == [0] * len(spans)
    assert all(end == len(content) or content[end].isspace() for _, end in spans)


def test_server_and_client_count_sample(tmp_path):
    path = tmp_path / "text.txt"
    path.write_text(SAMPLE_TEXT, encoding="utf-8")
    port = _free_port()
    results = []
    server = threading.Thread(
        target=lambda: results.append(
            run_server(str(path), "127.0.0.1", port, 1, lambda n: False)))
    server.start()
    frequencies = _client_with_retry(port)
    server.join(timeout=10)
    assert frequencies == count_words(SAMPLE_TEXT)
    assert results[0].counts == frequencies


def test_run_server_rejects_no_clients(tmp_path):
    path = tmp_path / "text.txt"
    path.write_text(SAMPLE_TEXT, encoding="utf-8")
    with pytest.raises(ValueError):
        run_server(str(path), "127.0.0.1", _free_port(), 0, lambda n: False)