"""HMDA Edit Tools: edit checks, stage scheduling and CSV edit reports.

Reads a pipe-delimited HMDA submission, runs the syntactical, validity,
quality, macro, special and totals stages over it, and prints the
syntactical and validity edit reports as CSV.
"""

__all__ = [
    "__version__",
]

__version__ = "0.2.0"
