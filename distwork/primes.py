"""Distributed primality checking: the server hands one number to each client
and collects whether it is prime."""

from __future__ import annotations

import argparse
import math
import re
import selectors
import socket
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass

PORT = 8081
MAX_CLIENTS = 10
BUFFER_SIZE = 1024
TIMEOUT_SECONDS = 30
POLL_INTERVAL = 5.0

DEFAULT_NUMBERS = (
    104729, 982451653, 6700417, 2147483647, 67280421310721,
    433494437, 2971215073, 11111111111111111, 9007199254740991,
    999999999989,
)

_INT = re.compile(r"[+-]?\d+")
_VERDICTS = {True: "PRIME", False: "NOT PRIME"}


def is_prime(number):
    """Return True if number is prime, using 6k +/- 1 trial division."""
    if number <= 1:
        return False
    if number <= 3:
        return True
    if number % 2 == 0 or number % 3 == 0:
        return False
    for divisor in range(5, math.isqrt(number) + 1, 6):
        if number % divisor == 0 or number % (divisor + 2) == 0:
            return False
    return True


def _leading_int(text: str) -> int:
    match = _INT.match(text.strip())
    return int(match.group()) if match else 0


@dataclass
class PrimeTask:
    """A number to check and the state of its check."""

    number: int
    assigned: bool = False
    result: bool | None = None
    client_id: int | None = None


class TaskPool:
    """The numbers to check and which client holds each of them."""

    def __init__(self, numbers):
        self.tasks = [PrimeTask(number) for number in numbers]

    def assign(self, client_id):
        """Give the first unassigned task to client_id; None if none is left."""
        for task in self.tasks:
            if not task.assigned:
                task.assigned = True
                task.client_id = client_id
                return task
        return None

    def release(self, client_id):
        """Return the unfinished tasks of client_id to the pool."""
        released = []
        for task in self.tasks:
            if task.client_id == client_id and task.result is None:
                task.assigned = False
                task.client_id = None
                released.append(task)
        return released

    def complete(self, client_id, result):
        """Record the result of client_id's task and return it, or None."""
        for task in self.tasks:
            if task.client_id == client_id and task.result is None:
                task.result = bool(result)
                return task
        return None

    def done(self):
        """True once every task has a result."""
        return all(task.result is not None for task in self.tasks)

    def report(self):
        """One line per task describing its outcome."""
        lines = []
        for task in self.tasks:
            if task.result is None:
                lines.append(f"{task.number}: Not determined (timeout or error)")
            else:
                lines.append(f"{task.number}: {_VERDICTS[task.result]}")
        return lines


class _Coordinator:
    def __init__(self, pool: TaskPool, server: socket.socket,
                 selector: selectors.BaseSelector):
        self.pool = pool
        self.server = server
        self.selector = selector
        self.clients: dict[socket.socket, int] = {}
        self.next_id = 1
        self.deadline: float | None = None

    def accept(self) -> None:
        try:
            conn, _ = self.server.accept()
        except OSError as exc:
            print(f"Accept failed: {exc}", file=sys.stderr)
            return
        if len(self.clients) >= MAX_CLIENTS:
            conn.close()
            return
        client_id = self.next_id
        print(f"New client connected, assigned ID: {client_id}")
        task = self.pool.assign(client_id)
        if task is None:
            print("No tasks available for new client")
            conn.close()
            return
        conn.sendall(str(task.number).encode())
        print(f"Assigned number {task.number} to client {client_id}")
        self.clients[conn] = client_id
        self.selector.register(conn, selectors.EVENT_READ)
        self.deadline = time.monotonic() + TIMEOUT_SECONDS
        self.next_id += 1

    def handle(self, conn: socket.socket) -> None:
        client_id = self.clients[conn]
        try:
            data = conn.recv(BUFFER_SIZE)
        except OSError:
            data = b""
        try:
            result = int(data.split()[0]) if data else None
        except ValueError:
            result = None
        if result is None:
            print(f"Client {client_id} disconnected")
            for task in self.pool.release(client_id):
                print(f"Task for number {task.number} returned to pool")
        else:
            task = self.pool.complete(client_id, result)
            if task is not None:
                print(f"Client {client_id} reported: {task.number} is "
                      f"{_VERDICTS[task.result]}")
        self.drop(conn)

    def drop(self, conn: socket.socket) -> None:
        self.selector.unregister(conn)
        del self.clients[conn]
        conn.close()

    def check_timeout(self) -> None:
        if self.deadline is not None and time.monotonic() >= self.deadline:
            print("Client timeout detected!")
            self.deadline = None

    def close(self) -> None:
        for conn in list(self.clients):
            self.drop(conn)


def run_server(numbers=DEFAULT_NUMBERS, host="0.0.0.0", port=PORT,
               poll_interval=POLL_INTERVAL):
    """Serve numbers to clients until every one has a result; return the pool."""
    pool = TaskPool(numbers)
    with socket.create_server((host, port), backlog=MAX_CLIENTS) as server, \
            selectors.DefaultSelector() as selector:
        print(f"Server listening on port {port}")
        print("Will be checking these numbers for primality:")
        for task in pool.tasks:
            print(task.number)
        selector.register(server, selectors.EVENT_READ)
        coordinator = _Coordinator(pool, server, selector)
        try:
            while not pool.done():
                events = selector.select(poll_interval)
                coordinator.check_timeout()
                for key, _ in events:
                    if key.fileobj is server:
                        coordinator.accept()
                    elif key.fileobj in coordinator.clients:
                        coordinator.handle(key.fileobj)
        finally:
            coordinator.close()
    print("\nFinal Results:")
    for line in pool.report():
        print(line)
    return pool


def run_client(host="127.0.0.1", port=PORT):
    """Check the number the server sends and report back; return (number, is_prime)."""
    with socket.create_connection((host, port)) as sock:
        print("Connected to server")
        data = sock.recv(BUFFER_SIZE)
        if not data:
            raise ConnectionError("no data received from server")
        number = _leading_int(data.decode())
        print(f"Received number to check: {number}")
        print(f"Checking if {number} is prime...")
        result = is_prime(number)
        print(f"Result: {number} is {_VERDICTS[result]}")
        sock.sendall(b"1" if result else b"0")
        print("Sent result to server")
    return number, result


def server_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the primality server."""
    parser = argparse.ArgumentParser(description="Distribute primality checks.")
    parser.add_argument("numbers", nargs="*", type=int)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--poll-interval", type=float, default=POLL_INTERVAL)
    args = parser.parse_args(argv)
    numbers = args.numbers or DEFAULT_NUMBERS
    try:
        run_server(numbers, args.host, args.port, args.poll_interval)
    except OSError as exc:
        print(f"Server failed: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for a primality client."""
    parser = argparse.ArgumentParser(description="Check a number for the server.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    try:
        run_client(args.host, args.port)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0