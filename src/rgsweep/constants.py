#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for rgsweep.

Constants are organized by category:
1. Type Definitions - Literal types and type aliases
2. Search Defaults - query options and external tool settings
3. Replace Defaults - backup and substitution settings
4. Output Format - separators and markers shared by parser and previews
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

InputField = Literal["search", "replace", "include", "exclude"]
SubstitutionPlatform = Literal["gnu", "bsd", "windows"]

# =============================================================================
# Search Defaults
# =============================================================================

DEFAULT_CASE_SENSITIVE = False
DEFAULT_USE_REGEX = True
DEFAULT_WHOLE_WORD = False
DEFAULT_INCLUDE_PATTERN = ""
DEFAULT_EXCLUDE_PATTERN = ""

DEFAULT_ENHANCED_COMMAND = "rg"
DEFAULT_BASELINE_COMMAND = "grep"
DEFAULT_MAX_RESULTS = 1000
DEFAULT_CONTEXT_LINES = 3

# Seconds between "Searching... Found N results" updates
DEFAULT_PROGRESS_INTERVAL = 0.1

DEFAULT_MAX_HISTORY = 10

# Operand passed to the baseline tool when no include pattern is set
BASELINE_MATCH_ALL = "*"

# Exit statuses documented by rg and grep: 0 = matches found, 1 = no matches
TOOL_SUCCESS_EXIT_CODES = frozenset({0, 1})

# Bytes requested per pipe read
READ_CHUNK_SIZE = 4096

# =============================================================================
# Replace Defaults
# =============================================================================

DEFAULT_BACKUP_FILES = True
DEFAULT_BACKUP_SUFFIX = "bak"

# =============================================================================
# Output Format
# =============================================================================

GROUP_SEPARATOR = "--"
PREVIEW_RULE = "-" * 40
TAB_REPLACEMENT = "    "
