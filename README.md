# distwork

A set of small master/worker programs. Each has a server that splits a job into
pieces and hands them to clients over TCP, and a client that does its piece and
sends the answer back. Five jobs come with the package:

| Job | Module | Server | Client | Default port |
|-----|--------|--------|--------|--------------|
| Sum of integers read from a file | `distwork.sumtask` | `distwork-sum-server` | `distwork-sum-client` | 8080 |
| Primality checks of large numbers | `distwork.primes` | `distwork-prime-server` | `distwork-prime-client` | 8081 |
| Row-by-row matrix multiplication | `distwork.matrix` | `distwork-matrix-server` | `distwork-matrix-client` | 8082 |
| Word frequencies of a text file | `distwork.wordcount` | `distwork-wordcount-server` | `distwork-wordcount-client` | 8083 |
| Merge sort of random integers, simple and parallel | `distwork.mergesort` | `distwork-sort-server` | `distwork-sort-client` | 8080 and 8081 |

Only the standard library is used.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Running a job

Start the server in one terminal and the clients in others. Every server takes
`--host` and `--port`; every client takes `--port`, and all but the sort client
take `--host` (default `127.0.0.1`).

### Summing integers

```
distwork-sum-server --file integersQ1.txt
distwork-sum-client
```

The server reads up to 10000 whitespace-separated integers from `--file`
(default `integersQ1.txt`). After each client connects it asks whether to wait
for more: press Enter to start, or type `more` to wait for another client, up
to `--max-clients` (default 10). The numbers are split into consecutive slices,
the first slices taking one extra number each, and the server prints the total
of the partial sums.

### Checking primes

```
distwork-prime-server [NUMBER ...]
distwork-prime-client
```

Without numbers the server checks a built-in list of ten large numbers. Each
client receives one number, tests it by trial division and reports back. A task
whose client disconnects without answering goes back to the pool. The server
runs until every number has an answer, then prints the results.
`--poll-interval` sets how often, in seconds, it wakes up while waiting.

### Multiplying matrices

```
distwork-matrix-server [--matrix-a A.txt] [--matrix-b B.txt]
distwork-matrix-client
```

Without files the server uses two built-in 3×3 matrices. A matrix file holds
`rows cols` followed by the elements, at most 100×100. The server accepts one
client per row of A, gives each one row of A together with all of B, and prints
the product.

### Counting words

```
distwork-wordcount-server
distwork-wordcount-client
```

The server writes a sample text to `--file` (default `text_file.txt`) before
starting; pass `--keep-file` to use the file as it is. Each client receives a
chunk of the text cut at a word boundary, counts words case-insensitively and
sends the counts back. As with the sum server, type `more` after a client
connects to wait for another one (up to `--max-clients`). The server prints the
ten most frequent words.

### Sorting

```
distwork-sort-server 1000 2
distwork-sort-client 127.0.0.1
distwork-sort-client 127.0.0.1
```

The server takes the array size (1–10000) and the number of clients (1–5),
fills an array with random integers and sorts it twice. In the simple sort each
client sorts a chunk and the server merges the chunks in turn on port `--port`.
In the parallel sort, on `--port` plus one, the clients sort chunks again and
then merge pairs of sorted chunks, level by level, until one is left. The
server prints how long each sort took and checks that the result is sorted.

## Using it as a library

The parts that do the work need no sockets:

```python
from distwork.primes import is_prime, TaskPool
from distwork.mergesort import merge_sort, merge_sorted, chunk_bounds
from distwork.wordcount import count_words, WordTable
from distwork.matrix import default_matrices, multiply_rows
from distwork.sumtask import split_work

is_prime(2147483647)                 # True
merge_sort([5, 3, 9, 1])             # [1, 3, 5, 9]
merge_sorted([1, 4], [2, 3])         # [1, 2, 3, 4]
chunk_bounds(10, 3)                  # [(0, 4), (4, 7), (7, 10)]
split_work([1, 2, 3, 4, 5], 2)       # [[1, 2, 3], [4, 5]]
count_words("The cat and the hat")   # {'the': 2, 'cat': 1, 'and': 1, 'hat': 1}

a, b = default_matrices()
multiply_rows(a, b)
```

Each module also has `run_server` and `run_client` functions that run a job
from Python and return its result, and `server_main` / `client_main`, which
are the commands above.

## What it does not do

The messages between server and client are plain text with no authentication
or encryption, so run the jobs only on a trusted network. A client handles a
single job and then exits. A word count client counts at most 5000 distinct
words of its chunk, and the server keeps at most 10000 distinct words.