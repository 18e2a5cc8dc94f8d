import socket
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from distwork.sumtask import (
    client_main,
    decode_work,
    encode_work,
    partial_sum,
    read_numbers,
    run_client,
    run_server,
    server_main,
    split_work,
)


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _retry_client(port):
    deadline = time.monotonic() + 5
    while True:
        try:
            return run_client("127.0.0.1", port)
        except ConnectionRefusedError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.02)


def test_read_numbers_reads_all(tmp_path):
    path = tmp_path / "numbers.txt"
    path.write_text("1 2 3\n4\n-5\n")
    assert read_numbers(path) == [1, 2, 3, 4, -5]


def test_read_numbers_stops_at_garbage(tmp_path):
    path = tmp_path / "numbers.txt"
    path.write_text("5 6 x 7")
    assert read_numbers(path) == [5, 6]


def test_read_numbers_stops_after_partial_token(tmp_path):
    path = tmp_path / "numbers.txt"
    path.write_text("12abc 4")
    assert read_numbers(path) == [12]


def test_read_numbers_respects_limit(tmp_path):
    path = tmp_path / "numbers.txt"
    path.write_text("1 2 3 4")
    assert read_numbers(path, 2) == [1, 2]


def test_read_numbers_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_numbers(tmp_path / "absent.txt")


@pytest.mark.parametrize("size,parts", [(10, 3), (3, 5), (0, 2), (7, 1), (12, 4)])
def test_split_work_invariants(size, parts):
    numbers = list(range(size))
    chunks = split_work(numbers, parts)
    assert len(chunks) == parts
    assert [n for chunk in chunks for n in chunk] == numbers
    sizes = [len(chunk) for chunk in chunks]
    assert max(sizes) - min(sizes) <= 1
    assert sizes == sorted(sizes, reverse=True)


def test_split_work_sizes():
    assert [len(c) for c in split_work(list(range(10)), 3)] == [4, 3, 3]


def test_split_work_rejects_zero_parts():
    with pytest.raises(ValueError):
        split_work([1, 2], 0)


def test_encode_work_format():
    assert encode_work([1, 2, 3]) == "3 1 2 3 "


@pytest.mark.parametrize("numbers", [[], [42], [-1, 0, 1, 99999]])
def test_work_round_trip(numbers):
    assert decode_work(encode_work(numbers)) == numbers


def test_decode_work_too_few_numbers():
    with pytest.raises(ValueError):
        decode_work("4 1 2")


def test_decode_work_empty():
    with pytest.raises(ValueError):
        decode_work("")


def test_decode_work_ignores_extra_tokens():
    assert decode_work("2 7 8 9 ") == [7, 8]


def test_partial_sum_splits_add_up():
    numbers = list(range(-20, 57))
    parts = split_work(numbers, 4)
    assert sum(partial_sum(part) for part in parts) == partial_sum(numbers)
    assert partial_sum([]) == 0


def test_server_and_clients_compute_total():
    numbers = list(range(1, 21))
    port = _free_port()
    with ThreadPoolExecutor(max_workers=3) as executor:
        server = executor.submit(
            run_server, numbers, "127.0.0.1", port, 10, lambda count: count < 2
        )
        clients = [executor.submit(_retry_client, port) for _ in range(2)]
        client_sums = [future.result(timeout=10) for future in clients]
        total = server.result(timeout=10)
    assert total == partial_sum(numbers)
    assert sum(client_sums) == total


def test_server_main_missing_file(tmp_path):
    assert server_main(["--file", str(tmp_path / "absent.txt")]) == 1


def test_client_main_connection_refused():
    assert client_main(["--port", str(_free_port())]) == 1