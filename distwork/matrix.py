"""Distributed matrix multiplication: the server hands one row of A together
with all of B to each client and assembles the product from their replies."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
from collections.abc import Sequence

PORT = 8082
MAX_CLIENTS = 10
BUFFER_SIZE = 8192
MAX_SIZE = 100


def _shape(matrix) -> tuple[int, int]:
    return len(matrix), (len(matrix[0]) if matrix else 0)


def read_matrix(path):
    """Read a matrix stored as 'rows cols' followed by its elements."""
    with open(path, encoding="utf-8") as handle:
        tokens = handle.read().split()
    if len(tokens) < 2:
        raise ValueError(f"{path}: missing matrix dimensions")
    try:
        values = [int(token) for token in tokens]
    except ValueError as exc:
        raise ValueError(f"{path}: malformed matrix data") from exc
    rows, cols = values[0], values[1]
    if not (0 <= rows <= MAX_SIZE and 0 <= cols <= MAX_SIZE):
        raise ValueError(f"{path}: dimensions must be between 0 and {MAX_SIZE}")
    elements = values[2:]
    if len(elements) < rows * cols:
        raise ValueError(f"{path}: fewer elements than {rows}x{cols}")
    return [elements[row * cols:(row + 1) * cols] for row in range(rows)]


def format_matrix(matrix):
    """Render a matrix with a 'Matrix RxC:' header, one line per row."""
    rows, cols = _shape(matrix)
    lines = [f"Matrix {rows}x{cols}:"]
    lines.extend("".join(f"{value} " for value in row) for row in matrix)
    return "\n".join(lines) + "\n"


def default_matrices():
    """The built-in 3x3 example matrices A and B."""
    a = [[i + j + 1 for j in range(3)] for i in range(3)]
    b = [[i * j + 1 for j in range(3)] for i in range(3)]
    return a, b


def multiply_rows(rows, b):
    """Multiply each of the given rows of A by the matrix B."""
    b_rows, b_cols = _shape(b)
    result = []
    for row in rows:
        if len(row) != b_rows:
            raise ValueError("incompatible matrix dimensions for multiplication")
        result.append([
            sum(value * b_row[col] for value, b_row in zip(row, b))
            for col in range(b_cols)
        ])
    return result


def _ints(values) -> str:
    return "".join(f"{value} " for value in values)


def encode_task(rows, a_shape, b):
    """Encode 'count a_rows a_cols b_rows b_cols <rows of A> <B> '."""
    a_rows, a_cols = a_shape
    b_rows, b_cols = _shape(b)
    header = _ints((len(rows), a_rows, a_cols, b_rows, b_cols))
    body = "".join(_ints(row) for row in rows) + "".join(_ints(row) for row in b)
    return header + body


def decode_task(text):
    """Decode a task into (rows of A, shape of A, B); missing values read as 0."""
    tokens = text.split()
    if len(tokens) < 5:
        raise ValueError("incomplete task header")
    count, a_rows, a_cols, b_rows, b_cols = (int(token) for token in tokens[:5])
    remaining = iter(tokens[5:])

    def take(n_rows: int, n_cols: int) -> list[list[int]]:
        return [[int(next(remaining, 0)) for _ in range(max(n_cols, 0))]
                for _ in range(max(n_rows, 0))]

    rows = take(count, a_cols)
    b = take(b_rows, b_cols)
    return rows, (a_rows, a_cols), b


def encode_result(rows):
    """Encode computed rows as 'count <values> '."""
    return f"{len(rows)} " + "".join(_ints(row) for row in rows)


def decode_result(text, cols):
    """Decode computed rows of the given width; missing values read as 0."""
    tokens = text.split()
    if not tokens:
        raise ValueError("no result received")
    count = max(int(tokens[0]), 0)
    remaining = iter(tokens[1:])
    return [[int(next(remaining, 0)) for _ in range(cols)] for _ in range(count)]


class RowAllocator:
    """Hands out row indices one at a time, safely across threads."""

    def __init__(self, total_rows):
        self.total_rows = total_rows
        self._next = 0
        self._lock = threading.Lock()

    def next_row(self):
        """Return the next unassigned row index, or None when all are taken."""
        with self._lock:
            if self._next >= self.total_rows:
                return None
            row = self._next
            self._next += 1
            return row


def _task_complete(data: bytes) -> bool:
    if not data[-1:].isspace():
        return False
    tokens = data.split()
    if len(tokens) < 5:
        return False
    try:
        count, _, a_cols, b_rows, b_cols = (max(int(t), 0) for t in tokens[:5])
    except ValueError:
        return True
    return len(tokens) >= 5 + count * a_cols + b_rows * b_cols


def _receive_task(sock: socket.socket) -> str:
    data = b""
    while chunk := sock.recv(BUFFER_SIZE):
        data += chunk
        if _task_complete(data):
            break
    if not data:
        raise ConnectionError("no data received from server")
    return data.decode()


def _receive_all(sock: socket.socket) -> str:
    data = b""
    while chunk := sock.recv(BUFFER_SIZE):
        data += chunk
    return data.decode()


def _serve_client(conn: socket.socket, a, b, c, allocator: RowAllocator,
                  lock: threading.Lock) -> None:
    with conn:
        row = allocator.next_row()
        if row is None:
            print("No work for this client")
            return
        print(f"Assigning row {row} to client")
        try:
            conn.sendall(encode_task([a[row]], _shape(a), b).encode())
            text = _receive_all(conn)
            result = decode_result(text, _shape(b)[1])
        except (OSError, ValueError) as exc:
            print(f"Client for row {row} failed: {exc}", file=sys.stderr)
            return
        with lock:
            for offset, values in enumerate(result):
                if row + offset < len(c):
                    c[row + offset] = values
        print(f"Received result for row {row}")


def run_server(a, b, host="0.0.0.0", port=PORT):
    """Compute A * B with one client per row of A and return the product."""
    a_rows, a_cols = _shape(a)
    b_rows, b_cols = _shape(b)
    if a_cols != b_rows:
        raise ValueError("incompatible matrix dimensions for multiplication")
    c = [[0] * b_cols for _ in range(a_rows)]
    print("Matrix A:")
    print(format_matrix(a), end="")
    print("Matrix B:")
    print(format_matrix(b), end="")

    allocator = RowAllocator(a_rows)
    lock = threading.Lock()
    threads: list[threading.Thread] = []
    with socket.create_server((host, port), backlog=MAX_CLIENTS) as server:
        print(f"Server listening on port {port}")
        print("Waiting for clients to help with matrix multiplication...")
        try:
            while len(threads) < a_rows:
                try:
                    conn, _ = server.accept()
                except OSError as exc:
                    print(f"Accept failed: {exc}", file=sys.stderr)
                    continue
                print("New client connected")
                thread = threading.Thread(
                    target=_serve_client, args=(conn, a, b, c, allocator, lock))
                thread.start()
                threads.append(thread)
                if len(threads) >= a_rows:
                    print("All rows have been assigned, no more clients needed")
        finally:
            for thread in threads:
                thread.join()

    print("\nResult Matrix C = A * B:")
    print(format_matrix(c), end="")
    return c


def run_client(host="127.0.0.1", port=PORT):
    """Multiply the rows the server sends and return the computed rows."""
    with socket.create_connection((host, port)) as sock:
        print("Connected to server")
        rows, (_, a_cols), b = decode_task(_receive_task(sock))
        b_rows, b_cols = _shape(b)
        print(f"Received {len(rows)} rows to process")
        print(f"A: {len(rows)}x{a_cols}, B: {b_rows}x{b_cols}")
        result = multiply_rows(rows, b)
        print("Multiplication completed for assigned rows")
        sock.sendall(encode_result(result).encode())
        print("Sent result to server")
    return result


def server_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the matrix server."""
    parser = argparse.ArgumentParser(description="Distribute a matrix product.")
    parser.add_argument("--matrix-a")
    parser.add_argument("--matrix-b")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    a, b = default_matrices()
    try:
        if args.matrix_a:
            a = read_matrix(args.matrix_a)
        if args.matrix_b:
            b = read_matrix(args.matrix_b)
        run_server(a, b, args.host, args.port)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Server failed: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for a matrix client."""
    parser = argparse.ArgumentParser(description="Multiply rows for the server.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    try:
        run_client(args.host, args.port)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0