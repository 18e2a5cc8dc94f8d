"""Master/worker programs that share computing jobs over TCP sockets:
summing, primality checks, matrix multiplication, word counting and merge sorting."""

__version__ = "0.1.0"
__all__ = ["sumtask", "primes", "matrix", "wordcount", "mergesort"]