"""Global parameters module for corecheck.

This module provides access to tool locations and time budgets.
"""
from .paths import (global_config, DEFAULT_VALIDATION_TIMEOUT, DEFAULT_KILL_AFTER,
                    DEFAULT_SCRAMBLER_SEED, DEFAULT_SCRAMBLER_TIMEOUT)
