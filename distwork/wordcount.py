"""Distributed word counting: the server cuts a text file into chunks, each
client counts the words of its chunk and the server merges the counts."""

from __future__ import annotations

import argparse
import re
import socket
import string
import sys
import threading
from collections.abc import Callable, Sequence

PORT = 8083
MAX_CLIENTS = 10
BUFFER_SIZE = 16384
CLIENT_WORD_LIMIT = 5000
MAX_WORD_COUNT = 10000
TOP_N = 10
SMALL_CHUNK = 100
DEFAULT_FILE = "text_file.txt"

SAMPLE_TEXT = (
    "This is a sample text file for testing the distributed word count system. "
    "It contains multiple words, some of which are repeated. "
    "The system should count the frequency of each word and return the top N most frequent words. "
    "Words like 'the', 'a', 'an', 'and', 'of', 'in', 'is', 'it' are common in English text. "
    "This example also includes some less common words like distributed, frequency, and system. "
    "The system should be case-insensitive, so 'The' and 'the' should be counted as the same word. "
    "Let's see how well the distributed system works for counting word frequencies!"
)

_DELIMITERS = re.compile(r"[ \t\n\r\f\v.,;:!?\"'()\[\]{}\-]+")
_WORD_CHARS = frozenset(string.ascii_letters + string.digits + "-_")
_WHITESPACE = frozenset(" \t\n\v\f\r")
_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _INT.match(text)
    return int(match.group(1)) if match else 0


def normalize_word(token):
    """Lower-case a token and drop everything but ASCII letters, digits, '-' and '_'."""
    return "".join(char for char in token if char in _WORD_CHARS).lower()


def count_words(text, limit=CLIENT_WORD_LIMIT):
    """Count word frequencies in text, in order of first appearance.

    Counting stops altogether once ``limit`` distinct words have been seen.
    """
    frequencies: dict[str, int] = {}
    for token in _DELIMITERS.split(text):
        if len(frequencies) >= limit:
            break
        word = normalize_word(token)
        if word:
            frequencies[word] = frequencies.get(word, 0) + 1
    return frequencies


def encode_frequencies(frequencies):
    """Encode counts as '<pairs> <word> <count> <word> <count> ... '."""
    body = "".join(f"{word} {count} " for word, count in frequencies.items())
    return f"{len(frequencies)} " + body


class ChunkSplitter:
    """Hands out consecutive spans of a text, extended to the next whitespace."""

    def __init__(self, content, parts=MAX_CLIENTS):
        if parts <= 0:
            raise ValueError("parts must be positive")
        self.content = content
        size = len(content)
        self.chunk_size = size // parts
        if self.chunk_size < SMALL_CHUNK:
            self.chunk_size = size
        self._next = 0
        self._lock = threading.Lock()

    def next_chunk(self):
        """Return the next (start, end) span, or None when nothing is left.

        The following chunk starts where this one ended before it was
        stretched to a word boundary.
        """
        size = len(self.content)
        with self._lock:
            start = self._next
            end = min(start + self.chunk_size, size)
            self._next = end
            while end < size and self.content[end] not in _WHITESPACE:
                end += 1
        if end - start <= 0:
            return None
        return start, end


class WordTable:
    """Merged word frequencies reported by clients, bounded in size."""

    def __init__(self, capacity=MAX_WORD_COUNT):
        self.capacity = capacity
        self.counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def merge(self, text):
        """Add the counts of an encoded frequency list to the table."""
        tokens = [token for token in text.split(" ") if token]
        if not tokens:
            return
        pair_count = _atoi(tokens[0])
        remaining = iter(tokens[1:])
        with self._lock:
            for _ in range(pair_count):
                word = next(remaining, None)
                count_text = next(remaining, None)
                if word is None or count_text is None:
                    break
                count = _atoi(count_text)
                if word in self.counts:
                    self.counts[word] += count
                elif len(self.counts) < self.capacity:
                    self.counts[word] = count

    def top(self, n=TOP_N):
        """The n most frequent words as (word, count) pairs, most frequent first."""
        with self._lock:
            ranked = sorted(self.counts.items(), key=lambda item: -item[1])
        return ranked[:max(n, 0)]


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


def _receive_all(sock: socket.socket) -> bytes:
    data = b""
    while chunk := sock.recv(BUFFER_SIZE):
        data += chunk
    return data


def _receive_exactly(sock: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = sock.recv(min(BUFFER_SIZE, size - len(data)))
        if not chunk:
            break
        data += chunk
    return data


def _serve_client(conn: socket.socket, splitter: ChunkSplitter, table: WordTable) -> None:
    with conn:
        span = splitter.next_chunk()
        if span is None:
            print("No more content to process for this client")
            return
        start, end = span
        payload = splitter.content[start:end].encode()
        print(f"Sending chunk of {end - start} bytes to client "
              f"(positions {start} to {end})")
        try:
            conn.sendall(str(len(payload)).encode())
            conn.recv(BUFFER_SIZE)
            conn.sendall(payload)
            reply = _receive_all(conn)
        except OSError as exc:
            print(f"Client failed: {exc}", file=sys.stderr)
            return
        if reply:
            print("Received word frequencies from client")
            table.merge(reply.decode(errors="replace"))


def _read_text(path) -> str:
    with open(path, encoding="utf-8", errors="replace", newline="") as handle:
        return handle.read()


def run_server(path=DEFAULT_FILE, host="0.0.0.0", port=PORT, max_clients=MAX_CLIENTS,
               want_more: Callable[[int], bool] | None = None):
    """Share the words of a file among clients and return the merged table."""
    if max_clients < 1:
        raise ValueError("max_clients must be at least 1")
    if want_more is None:
        want_more = _ask_for_more
    splitter = ChunkSplitter(_read_text(path), MAX_CLIENTS)
    table = WordTable()
    threads: list[threading.Thread] = []
    with socket.create_server((host, port), backlog=MAX_CLIENTS) as server:
        print(f"Server listening on port {port}")
        print("Waiting for clients to help with word counting...")
        try:
            while len(threads) < max_clients:
                try:
                    conn, _ = server.accept()
                except OSError as exc:
                    print(f"Accept failed: {exc}", file=sys.stderr)
                    continue
                print("New client connected")
                thread = threading.Thread(target=_serve_client,
                                          args=(conn, splitter, table))
                thread.start()
                threads.append(thread)
                if not want_more(len(threads)):
                    break
        finally:
            for thread in threads:
                thread.join()

    print(f"\nTop {TOP_N} most frequent words:")
    for rank, (word, count) in enumerate(table.top(TOP_N), start=1):
        print(f'{rank}. "{word}": {count} occurrences')
    return table


def run_client(host="127.0.0.1", port=PORT):
    """Count the words of the chunk the server sends; return the frequencies."""
    with socket.create_connection((host, port)) as sock:
        print("Connected to server")
        header = sock.recv(BUFFER_SIZE)
        if not header:
            raise ConnectionError("no data received from server")
        chunk_size = _atoi(header.decode(errors="replace"))
        print(f"Expected chunk size: {chunk_size} bytes")
        sock.sendall(b"ACK")
        data = _receive_exactly(sock, chunk_size)
        if not data:
            raise ConnectionError("failed to receive chunk")
        print(f"Received {len(data)} bytes of text")
        frequencies = count_words(data.decode(errors="replace"))
        print(f"Found {len(frequencies)} unique words in chunk")
        sock.sendall(encode_frequencies(frequencies).encode())
        print("Sent word frequencies to server")
    return frequencies


def server_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the word count server."""
    parser = argparse.ArgumentParser(description="Distribute a word count.")
    parser.add_argument("--file", default=DEFAULT_FILE)
    parser.add_argument("--keep-file", action="store_true",
                        help="do not overwrite the file with the sample text")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--max-clients", type=int, default=MAX_CLIENTS)
    args = parser.parse_args(argv)
    if not args.keep_file:
        try:
            with open(args.file, "w", encoding="utf-8") as handle:
                handle.write(SAMPLE_TEXT)
        except OSError:
            pass
    try:
        run_server(args.file, args.host, args.port, args.max_clients)
    except (OSError, ValueError) as exc:
        print(f"Server failed: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for a word count client."""
    parser = argparse.ArgumentParser(description="Count words for the server.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    try:
        run_client(args.host, args.port)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0