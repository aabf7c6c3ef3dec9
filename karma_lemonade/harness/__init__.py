# Copyright (c) 2025 Karma Lemonade Contributors
# BSD-3-Clause License

"""Command line harness for running and checking games."""
