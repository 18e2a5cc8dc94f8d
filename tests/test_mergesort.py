import random
import socket
import threading
import time

import pytest

from distwork.mergesort import (
    chunk_bounds,
    decode_merge_pair,
    deserialize_array,
    encode_merge_pair,
    format_preview,
    is_sorted,
    merge_sort,
    merge_sorted,
    parallel_sort,
    run_client,
    serialize_array,
    server_main,
    simple_sort,
)


def _free_port_pair():
    for _ in range(50):
        with socket.socket() as first:
            first.bind(("127.0.0.1", 0))
            port = first.getsockname()[1]
            if port >= 65535:
                continue
            try:
                with socket.socket() as second:
                    second.bind(("127.0.0.1", port + 1))
            except OSError:
                continue
            return port
    raise RuntimeError("no free port pair")


def test_merge_sort_sorts_small_list():
    assert merge_sort([5, 3, 9, 1]) == [1, 3, 5, 9]


def test_merge_sort_empty_and_single():
    assert merge_sort([]) == []
    assert merge_sort([7]) == [7]


def test_merge_sort_does_not_mutate_input():
    values = [4, 2, 8, 2]
    merge_sort(values)
    assert values == [4, 2, 8, 2]


@pytest.mark.parametrize("seed", range(5))
def test_merge_sort_matches_builtin(seed):
    rng = random.Random(seed)
    values = [rng.randrange(-50, 50) for _ in range(rng.randrange(0, 60))]
    result = merge_sort(values)
    assert result == sorted(values)
    assert is_sorted(result)


def test_merge_sorted_merges():
    left, right = [1, 4, 6], [2, 3, 7]
    assert merge_sorted(left, right) == sorted(left + right)


def test_merge_sorted_with_empty_side():
    assert merge_sorted([], [1, 2]) == [1, 2]
    assert merge_sorted([3], []) == [3]


def test_serialize_array_format():
    assert serialize_array([3, -1, 20]) == "3 -1 20 "
    assert serialize_array([]) == ""


def test_serialize_round_trip():
    values = [10, -4, 0, 9999]
    assert deserialize_array(serialize_array(values)) == values


def test_deserialize_stops_at_separator():
    assert deserialize_array("1 2 | 3") == [1, 2]


def test_deserialize_non_numeric_reads_zero():
    assert deserialize_array("x 5") == [0, 5]


def test_encode_merge_pair_format():
    assert encode_merge_pair([1, 2], [3]) == "2 1 1 2 | 3 "


def test_merge_pair_round_trip():
    left, right = [1, 5, 9], [2, 2, 8, 11]
    assert decode_merge_pair(encode_merge_pair(left, right)) == (left, right)


def test_merge_pair_round_trip_empty_right():
    assert decode_merge_pair(encode_merge_pair([4], [])) == ([4], [])


def test_decode_merge_pair_rejects_empty():
    with pytest.raises(ValueError):
        decode_merge_pair("")


@pytest.mark.parametrize("size,parts", [(10, 3), (7, 7), (2, 5), (100, 4)])
def test_chunk_bounds_cover_range(size, parts):
    bounds = chunk_bounds(size, parts)
    assert len(bounds) == parts
    assert bounds[0][0] == 0
    assert bounds[-1][1] == size
    for (_, end), (start, _) in zip(bounds, bounds[1:]):
        assert end == start
    lengths = [end - start for start, end in bounds]
    assert max(lengths) - min(lengths) <= 1
    assert lengths == sorted(lengths, reverse=True)


def test_chunk_bounds_rejects_zero_parts():
    with pytest.raises(ValueError):
        chunk_bounds(10, 0)


def test_is_sorted():
    assert is_sorted([1, 1, 2])
    assert not is_sorted([2, 1])
    assert is_sorted([])


def test_format_preview_short():
    assert format_preview([0, 1, 2]) == "[ 0 1 2 ]"


def test_format_preview_truncates():
    text = format_preview(list(range(25)))
    assert text.endswith("... ]")
    assert text.startswith("[ 0 1 ")
    assert len(text[2:-5].split()) == 20


def test_sorts_reject_bad_client_count():
    with pytest.raises(ValueError):
        simple_sort([1, 2], 0)
    with pytest.raises(ValueError):
        parallel_sort([1, 2], 6)


@pytest.mark.parametrize("argv", [["0", "2"], ["10001", "1"], ["10", "0"], ["10", "6"]])
def test_server_main_rejects_bad_arguments(argv):
    assert server_main(argv) == 1


def test_run_client_without_server_fails():
    port = _free_port_pair()
    with pytest.raises(OSError):
        run_client("127.0.0.1", port)


def test_simple_and_parallel_sort_with_clients():
    port = _free_port_pair()
    values = [42, 7, 19, 3, 88, 3, 56, 21, 0, 64, 15]
    num_clients = 3
    results = {}
    client_results = []

    def serve():
        results["simple"] = simple_sort(values, num_clients, "127.0.0.1", port)
        results["parallel"] = parallel_sort(values, num_clients, "127.0.0.1", port + 1)

    def client():
        for _ in range(200):
            try:
                client_results.append(run_client("127.0.0.1", port))
                return
            except ConnectionRefusedError:
                time.sleep(0.05)

    server = threading.Thread(target=serve, daemon=True)
    server.start()
    clients = [threading.Thread(target=client, daemon=True) for _ in range(num_clients)]
    for thread in clients:
        thread.start()
    server.join(timeout=30)
    for thread in clients:
        thread.join(timeout=10)

    assert not server.is_alive()
    assert results["simple"] == sorted(values)
    assert results["parallel"] == sorted(values)
    assert len(client_results) == num_clients
    assert sum(len(simple) for simple, _ in client_results) == len(values)
    assert all(is_sorted(simple) and is_sorted(par) for simple, par in client_results)