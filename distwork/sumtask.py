"""Distributed summation: a server splits a list of integers among clients,
each client sums its share and the server adds up the partial sums."""

from __future__ import annotations

import argparse
import re
import socket
import sys
from collections.abc import Callable, Sequence

PORT = 8080
MAX_CLIENTS = 10
BUFFER_SIZE = 1024
MAX_NUMBERS = 10000
DEFAULT_FILE = "integersQ1.txt"

_INT = re.compile(r"[+-]?\d+")


def read_numbers(path, limit=MAX_NUMBERS):
    """Read whitespace-separated integers from a file, stopping at the first non-integer."""
    numbers: list[int] = []
    with open(path, encoding="utf-8") as handle:
        for token in handle.read().split():
            if len(numbers) >= limit:
                break
            match = _INT.match(token)
            if match is None:
                break
            numbers.append(int(match.group()))
            if match.end() != len(token):
                break
    return numbers


def split_work(numbers, parts):
    """Split numbers into consecutive slices; the first slices take one extra item each."""
    if parts <= 0:
        raise ValueError("parts must be positive")
    base, extras = divmod(len(numbers), parts)
    chunks: list[list[int]] = []
    start = 0
    for index in range(parts):
        size = base + (1 if index < extras else 0)
        chunks.append(list(numbers[start:start + size]))
        start += size
    return chunks


def encode_work(numbers):
    """Encode a work item as '<count> <n1> <n2> ... '."""
    return f"{len(numbers)} " + "".join(f"{number} " for number in numbers)


def decode_work(text):
    """Decode a work item produced by encode_work."""
    tokens = text.split()
    if not tokens:
        raise ValueError("no work received")
    count = max(int(tokens[0]), 0)
    values = tokens[1:count + 1]
    if len(values) < count:
        raise ValueError("fewer numbers received than expected")
    return [int(value) for value in values]


def partial_sum(numbers):
    """Sum a slice of numbers."""
    return sum(numbers)


def _ask_for_more(client_count: int) -> bool:
    prompt = (
        f"Press Enter to continue with {client_count} clients "
        "or type 'more' to wait for more clients: "
    )
    try:
        answer = input(prompt)
    except EOFError:
        answer = ""
    return answer.startswith("more")


def _work_complete(data: bytes) -> bool:
    if not data[-1:].isspace():
        return False
    tokens = data.split()
    try:
        count = int(tokens[0])
    except ValueError:
        return True
    return len(tokens) > max(count, 0)


def _receive_work(sock: socket.socket) -> str:
    data = b""
    while True:
        chunk = sock.recv(BUFFER_SIZE)
        if not chunk:
            break
        data += chunk
        if _work_complete(data):
            break
    if not data:
        raise ConnectionError("no data received from server")
    return data.decode()


def _receive_result(sock: socket.socket) -> int:
    data = b""
    while chunk := sock.recv(BUFFER_SIZE):
        data += chunk
    tokens = data.split()
    if not tokens:
        raise ConnectionError("no result received from client")
    return int(tokens[0])


def run_server(numbers, host="0.0.0.0", port=PORT, max_clients=MAX_CLIENTS,
               want_more: Callable[[int], bool] | None = None):
    """Accept clients, hand out slices of numbers and return the total sum."""
    if max_clients < 1:
        raise ValueError("max_clients must be at least 1")
    if want_more is None:
        want_more = _ask_for_more
    clients: list[socket.socket] = []
    with socket.create_server((host, port), backlog=max_clients) as server:
        print(f"Server listening on port {port}")
        print("Waiting for clients to connect...")
        try:
            while len(clients) < max_clients:
                try:
                    conn, _ = server.accept()
                except OSError as exc:
                    print(f"Accept failed: {exc}", file=sys.stderr)
                    continue
                clients.append(conn)
                print(f"New client connected ({len(clients)}/{max_clients})")
                if not want_more(len(clients)):
                    break

            print(f"Starting computation with {len(clients)} clients")
            chunks = split_work(numbers, len(clients))
            for index, (conn, chunk) in enumerate(zip(clients, chunks), start=1):
                conn.sendall(encode_work(chunk).encode())
                print(f"Sent {len(chunk)} numbers to client {index}")

            total = 0
            for index, conn in enumerate(clients, start=1):
                part = _receive_result(conn)
                total += part
                print(f"Received partial sum from client {index}: {part}")
        finally:
            for conn in clients:
                conn.close()
    print(f"Total sum of all numbers: {total}")
    return total


def run_client(host="127.0.0.1", port=PORT):
    """Receive a slice of numbers, send back its sum and return that sum."""
    with socket.create_connection((host, port)) as sock:
        print("Connected to server")
        text = _receive_work(sock)
        print(f"Received {text.split()[0]} numbers to process")
        numbers = decode_work(text)
        total = partial_sum(numbers)
        print(f"Calculated partial sum: {total}")
        sock.sendall(str(total).encode())
        print("Sent result to server")
    return total


def server_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the summation server."""
    parser = argparse.ArgumentParser(description="Distribute a sum over clients.")
    parser.add_argument("--file", default=DEFAULT_FILE)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--max-clients", type=int, default=MAX_CLIENTS)
    args = parser.parse_args(argv)
    try:
        numbers = read_numbers(args.file)
    except OSError as exc:
        print(f"File opening failed: {exc}", file=sys.stderr)
        return 1
    print(f"Read {len(numbers)} numbers from file")
    try:
        run_server(numbers, args.host, args.port, args.max_clients)
    except (OSError, ValueError) as exc:
        print(f"Server failed: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for a summation client."""
    parser = argparse.ArgumentParser(description="Sum a slice of numbers for the server.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    try:
        run_client(args.host, args.port)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0