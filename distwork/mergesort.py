"""Distributed merge sorting.

The server splits an array among clients and sorts it in two ways. In the
simple sort each client sorts a chunk and the server merges the chunks one
after another. In the parallel sort the server also hands pairs of sorted
chunks back to the clients to merge, level by level, until one chunk is left.
"""

from __future__ import annotations

import argparse
import random
import re
import socket
import sys
import time
from collections.abc import Sequence
from contextlib import ExitStack

PORT = 8080
MAX_CLIENTS = 5
MAX_BUFFER = 4096
MAX_ARRAY_SIZE = 10000
PREVIEW_LENGTH = 20
SEPARATOR = "|"
DONE = b"DONE"

_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _INT.match(text)
    return int(match.group(1)) if match else 0


def merge_sorted(left, right):
    """Merge two sorted sequences into one sorted list; ties take from left first."""
    merged: list[int] = []
    i = j = 0
    while i < len(left) and j < len(right):
        if left[i] <= right[j]:
            merged.append(left[i])
            i += 1
        else:
            merged.append(right[j])
            j += 1
    merged.extend(left[i:])
    merged.extend(right[j:])
    return merged


def merge_sort(values):
    """Return a new list with values sorted by a top-down merge sort."""
    values = list(values)
    if len(values) <= 1:
        return values
    middle = (len(values) - 1) // 2 + 1
    return merge_sorted(merge_sort(values[:middle]), merge_sort(values[middle:]))


def serialize_array(values):
    """Encode integers as '<v1> <v2> ... ', each followed by a space."""
    return "".join(f"{value} " for value in values)


def deserialize_array(text):
    """Decode space-separated integers, stopping at a '|' token."""
    values: list[int] = []
    for token in text.split():
        if token == SEPARATOR:
            break
        values.append(_atoi(token))
    return values


def encode_merge_pair(left, right):
    """Encode a merge task as '<nleft> <nright> <left...> | <right...>'."""
    return (f"{len(left)} {len(right)} " + serialize_array(left)
            + f"{SEPARATOR} " + serialize_array(right))


def decode_merge_pair(text):
    """Decode a merge task into its (left, right) lists."""
    tokens = text.split()
    if len(tokens) < 2:
        raise ValueError("incomplete merge task")
    body = tokens[2:]
    if SEPARATOR in body:
        cut = body.index(SEPARATOR)
        left_tokens, right_tokens = body[:cut], body[cut + 1:]
    else:
        left_tokens, right_tokens = body, []
    return [_atoi(t) for t in left_tokens], [_atoi(t) for t in right_tokens]


def chunk_bounds(size, parts):
    """Split range(size) into parts (start, end) spans; early spans get one extra."""
    if parts <= 0:
        raise ValueError("parts must be positive")
    base, remainder = divmod(size, parts)
    bounds = []
    for index in range(parts):
        start = index * base + min(index, remainder)
        length = base + (1 if index < remainder else 0)
        bounds.append((start, start + length))
    return bounds


def is_sorted(values):
    """True if values never decrease."""
    return all(a <= b for a, b in zip(values, values[1:]))


def format_preview(values):
    """Render at most the first 20 values as '[ a b ... ]'."""
    shown = serialize_array(values[:PREVIEW_LENGTH])
    more = "... " if len(values) > PREVIEW_LENGTH else ""
    return f"[ {shown}{more}]"


def _check_clients(num_clients: int) -> None:
    if not 1 <= num_clients <= MAX_CLIENTS:
        raise ValueError(f"Number of clients must be between 1 and {MAX_CLIENTS}")


def _receive_ints(sock: socket.socket, count: int) -> list[int]:
    if count <= 0:
        return []
    data = b""
    while chunk := sock.recv(MAX_BUFFER):
        data += chunk
        if data[-1:].isspace() and len(data.split()) >= count:
            break
    return deserialize_array(data.decode(errors="replace"))


def _distribute(server: socket.socket, stack: ExitStack, values,
                num_clients: int) -> tuple[list[socket.socket], list[list[int]]]:
    """Hand one chunk to each of num_clients clients and collect them sorted."""
    clients: list[socket.socket] = []
    bounds = chunk_bounds(len(values), num_clients)
    for index, (start, end) in enumerate(bounds, start=1):
        conn, _ = server.accept()
        stack.enter_context(conn)
        clients.append(conn)
        print(f"Client {index} connected")
        conn.sendall(str(end - start).encode())
        conn.recv(10)
        conn.sendall(serialize_array(values[start:end]).encode())
        print(f"Sent {end - start} elements to client {index}")

    chunks = []
    for index, (conn, (start, end)) in enumerate(zip(clients, bounds), start=1):
        chunk = _receive_ints(conn, end - start)
        chunks.append(chunk)
        print(f"Received sorted chunk from client {index} with {len(chunk)} elements")
    return clients, chunks


def _report_time(label: str, started: float) -> None:
    elapsed = time.perf_counter() - started
    print(f"{label} merge sorting completed in: {elapsed:.6f} seconds")


def simple_sort(values, num_clients, host="0.0.0.0", port=PORT):
    """Sort values with clients sorting chunks and the server merging them in turn."""
    _check_clients(num_clients)
    values = list(values)
    started = time.perf_counter()
    print("\n[Simple Merge Sorting]")
    with socket.create_server((host, port), backlog=num_clients) as server, \
            ExitStack() as stack:
        print(f"Server listening on port {port}...")
        _, chunks = _distribute(server, stack, values, num_clients)

    result = chunks[0]
    for chunk in chunks[1:]:
        result = merge_sorted(result, chunk)
    _report_time("Simple", started)
    return result


def parallel_sort(values, num_clients, host="0.0.0.0", port=PORT + 1):
    """Sort values with clients sorting chunks and then merging them pairwise."""
    _check_clients(num_clients)
    values = list(values)
    started = time.perf_counter()
    print("\n[Parallel Merge Sorting]")
    with socket.create_server((host, port), backlog=num_clients * 2) as server, \
            ExitStack() as stack:
        print(f"Server listening on port {port}...")
        clients, current = _distribute(server, stack, values, num_clients)

        level = 1
        while len(current) > 1:
            print(f"Merge level {level}, working with {len(current)} chunks")
            merged: list[list[int]] = []
            for pair_index, left_index in enumerate(range(0, len(current), 2)):
                left = current[left_index]
                if left_index + 1 >= len(current):
                    merged.append(left)
                    continue
                right = current[left_index + 1]
                conn = clients[pair_index % num_clients]
                conn.sendall(encode_merge_pair(left, right).encode())
                result = _receive_ints(conn, len(left) + len(right))
                print(f"Received merged chunk with {len(result)} elements")
                merged.append(result)
            current = merged
            level += 1

        for conn in clients:
            try:
                conn.sendall(DONE)
            except OSError:
                pass

    _report_time("Parallel", started)
    return current[0]


def _connect_retrying(address: tuple[str, int], attempts: int = 100,
                      delay: float = 0.05) -> socket.socket:
    # The parallel listener opens only after the simple sort has finished.
    for _ in range(attempts - 1):
        try:
            return socket.create_connection(address)
        except ConnectionRefusedError:
            time.sleep(delay)
    return socket.create_connection(address)


def _sort_assigned_chunk(sock: socket.socket, label: str) -> list[int]:
    header = sock.recv(20)
    if not header:
        raise ConnectionError("no data received from server")
    count = _atoi(header.decode(errors="replace"))
    sock.sendall(b"ACK")
    chunk = _receive_ints(sock, count)
    print(f"Received {len(chunk)} integers to sort{label}")
    ordered = merge_sort(chunk)
    print(f"Chunk sorted{label}")
    sock.sendall(serialize_array(ordered).encode())
    return ordered


def _merge_task_complete(data: bytes) -> bool:
    if data.startswith(DONE):
        return True
    if DONE.startswith(data):
        return False
    if not data[-1:].isspace():
        return False
    tokens = data.split()
    if len(tokens) < 2:
        return False
    try:
        left, right = (max(int(token), 0) for token in tokens[:2])
    except ValueError:
        return True
    return len(tokens) >= 2 + left + 1 + right


def _receive_merge_task(sock: socket.socket) -> str | None:
    data = b""
    while chunk := sock.recv(MAX_BUFFER * 2):
        data += chunk
        if _merge_task_complete(data):
            break
    if not data or data.startswith(DONE):
        return None
    return data.decode(errors="replace")


def run_client(server_ip="127.0.0.1", port=PORT):
    """Take part in both sorts; return the (simple, parallel) chunks this client sorted."""
    with socket.create_connection((server_ip, port)) as sock:
        print("Connected to server for simple sort")
        simple_chunk = _sort_assigned_chunk(sock, "")

    with _connect_retrying((server_ip, port + 1)) as sock:
        print("Connected to server for parallel sort")
        parallel_chunk = _sort_assigned_chunk(sock, " for parallel sort")
        while (task := _receive_merge_task(sock)) is not None:
            left, right = decode_merge_pair(task)
            print(f"Received merge task: {len(left)} and {len(right)} elements")
            merged = merge_sorted(left, right)
            sock.sendall(serialize_array(merged).encode())
            print(f"Sent merged result of {len(merged)} elements")
        print("Received termination signal, exiting...")
    return simple_chunk, parallel_chunk


def server_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point: sort a random array both ways."""
    parser = argparse.ArgumentParser(description="Sort a random array with clients.")
    parser.add_argument("array_size", type=int)
    parser.add_argument("num_clients", type=int)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)

    if not 1 <= args.array_size <= MAX_ARRAY_SIZE:
        print(f"Array size must be between 1 and {MAX_ARRAY_SIZE}")
        return 1
    if not 1 <= args.num_clients <= MAX_CLIENTS:
        print(f"Number of clients must be between 1 and {MAX_CLIENTS}")
        return 1

    values = [random.randrange(10000) for _ in range(args.array_size)]
    print(f"Generated array of {args.array_size} random integers")
    print(f"Original array (first few elements): {format_preview(values)}")

    try:
        for label, sort in (("Simple", simple_sort), ("Parallel", parallel_sort)):
            port = args.port if sort is simple_sort else args.port + 1
            result = sort(values, args.num_clients, args.host, port)
            print(f"Sorted array (first few elements): {format_preview(result)}")
            verdict = "SORTED CORRECTLY" if is_sorted(result) else "SORT FAILED!"
            print(f"{label} sort verification: {verdict}")
    except OSError as exc:
        print(f"Server failed: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for a sorting client."""
    parser = argparse.ArgumentParser(description="Sort and merge chunks for the server.")
    parser.add_argument("server_ip")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    try:
        run_client(args.server_ip, args.port)
    except (OSError, ValueError) as exc:
        print(f"Connection Failed: {exc}", file=sys.stderr)
        return 1
    return 0