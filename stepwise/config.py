"""Centralized configuration for stepwise.

This module defines:
- Decimal precision used by the numeric evaluator
- The iteration cap of the fixpoint driver
- Display rounding used by the infix printer
- REPL history location

Each value can be overridden via an environment variable prefixed with
STEPWISE_ (read once, at import time).
"""

import os
from pathlib import Path

VERSION = "0.1.0"

# Numeric evaluation
PRECISION = int(os.getenv("STEPWISE_PRECISION", "10"))  # significant digits

# Fixpoint driver: maximum number of trees kept in a derivation history
MAX_PASSES = int(os.getenv("STEPWISE_MAX_PASSES", "80"))

# Printing: literals that round to an integer at this many decimals print as integers
DISPLAY_DECIMALS = int(os.getenv("STEPWISE_DISPLAY_DECIMALS", "5"))

# REPL
HISTORY_FILE = Path(
    os.getenv("STEPWISE_HISTORY_FILE", str(Path.home() / ".stepwise_history"))
)
