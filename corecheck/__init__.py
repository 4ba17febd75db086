"""Validation of unsat-core answers from SMT competition runs."""
import os

# Debug flag - can be set via environment variable CORECHECK_DEBUG
CORECHECK_DEBUG = os.environ.get("CORECHECK_DEBUG", "False").lower() in ("true", "1", "yes")

__version__ = "0.3.0"
