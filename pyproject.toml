[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "distwork"
version = "0.1.0"
description = "Small master/worker programs that share computing jobs over TCP sockets"
requires-python = ">=3.10"
dependencies = []
keywords = ["distributed", "sockets", "tcp", "master-worker", "merge-sort", "word-count", "primes", "matrix"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
distwork-sum-server = "distwork.sumtask:server_main"
distwork-sum-client = "distwork.sumtask:client_main"
distwork-prime-server = "distwork.primes:server_main"
distwork-prime-client = "distwork.primes:client_main"
distwork-matrix-server = "distwork.matrix:server_main"
distwork-matrix-client = "distwork.matrix:client_main"
distwork-wordcount-server = "distwork.wordcount:server_main"
distwork-wordcount-client = "distwork.wordcount:client_main"
distwork-sort-server = "distwork.mergesort:server_main"
distwork-sort-client = "distwork.mergesort:client_main"

[tool.setuptools.packages.find]
include = ["distwork*"]

[tool.pytest.ini_options]
addopts = "-ra"
