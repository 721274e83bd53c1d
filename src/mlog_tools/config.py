"""
mlog-tools Configuration
========================

Settings shared by the formatter, the validator and the CLI. Configuration
can come from:
- Default values (defined here)
- Environment variables
- Command line options (applied by the CLI on top of the above)

Environment variables (all optional):
    MLOG_TAB_SIZE: Spaces per indentation level (integer)
    MLOG_INSERT_SPACES: Indent with spaces ("1"/"true") or tabs ("0"/"false")
    MLOG_FINAL_NEWLINE: End formatted output with a newline (boolean)
    MLOG_MAX_INSTRUCTIONS: Processor instruction limit (integer)
    MLOG_MAX_LABELS: Processor label limit (integer)

Invalid environment values are logged and ignored.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from mlog_tools.constants import MAX_INSTRUCTION_COUNT, MAX_LABEL_COUNT, MAX_TOKENS_PER_LINE
from mlog_tools.errors import ConfigError
from mlog_tools.formatter import FormatOptions

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def _parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return None


@dataclass
class MlogConfig:
    """
    Configuration for formatting and validation.

    Attributes:
        tab_size: Spaces per indentation level (default: 4)
        insert_spaces: Indent with spaces instead of tabs (default: True)
        insert_final_newline: End formatted output with a newline (default: True)
        max_instructions: Instructions a processor accepts (default: 1000)
        max_labels: Labels a processor accepts (default: 500)
        max_tokens_per_line: Tokens allowed in one statement (default: 16)
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # FORMATTING
    # ═══════════════════════════════════════════════════════════════════════════

    tab_size: int = 4
    insert_spaces: bool = True
    insert_final_newline: bool = True

    # ═══════════════════════════════════════════════════════════════════════════
    # PROCESSOR LIMITS
    # ═══════════════════════════════════════════════════════════════════════════

    max_instructions: int = MAX_INSTRUCTION_COUNT
    max_labels: int = MAX_LABEL_COUNT
    max_tokens_per_line: int = MAX_TOKENS_PER_LINE

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "MlogConfig":
        """
        Create MlogConfig from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            MlogConfig with values from the environment
        """
        env = os.environ if environ is None else environ
        config = cls()

        for name, attribute in (
            ("MLOG_TAB_SIZE", "tab_size"),
            ("MLOG_MAX_INSTRUCTIONS", "max_instructions"),
            ("MLOG_MAX_LABELS", "max_labels"),
        ):
            if raw := env.get(name):
                try:
                    setattr(config, attribute, int(raw))
                except ValueError:
                    logger.warning(f"Ignoring {name}={raw!r}: not an integer")

        for name, attribute in (
            ("MLOG_INSERT_SPACES", "insert_spaces"),
            ("MLOG_FINAL_NEWLINE", "insert_final_newline"),
        ):
            if raw := env.get(name):
                value = _parse_bool(raw)
                if value is None:
                    logger.warning(f"Ignoring {name}={raw!r}: not a boolean")
                else:
                    setattr(config, attribute, value)

        return config

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    def validate(self) -> "MlogConfig":
        """
        Check that every setting can be honoured.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigError: If a value is out of range
        """
        if self.tab_size < 1:
            raise ConfigError("tab size", self.tab_size, "must be at least 1",
                              hint="set MLOG_TAB_SIZE or --tab-size to a positive integer")
        if self.max_instructions < 1:
            raise ConfigError("instruction limit", self.max_instructions, "must be at least 1")
        if self.max_labels < 0:
            raise ConfigError("label limit", self.max_labels, "must not be negative")
        if self.max_tokens_per_line < 1:
            raise ConfigError("token limit", self.max_tokens_per_line, "must be at least 1")
        return self

    def format_options(self) -> FormatOptions:
        """Return the formatter options described by this configuration."""
        return FormatOptions(
            tab_size=self.tab_size,
            insert_spaces=self.insert_spaces,
            insert_final_newline=self.insert_final_newline,
        )
