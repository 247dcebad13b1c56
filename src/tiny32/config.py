"""
tiny32 Configuration
====================

Assembler settings. Configuration can come from:
- Default values (defined here)
- Environment variables (``AssemblerConfig.from_env()``)
- Command-line flags, which the CLI applies on top of the environment

Environment variables (all optional, truthy values are 1/true/yes/on):
    TINY32_STRICT_LABELS: Reject duplicate label definitions
    TINY32_VERBOSE: Enable debug logging
    TINY32_NO_DUMP: Do not print the symbol/instruction dump after assembly
"""

import os
from dataclasses import dataclass, replace

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class AssemblerConfig:
    """
    Settings for one assembler instance.

    Attributes:
        strict_labels: Raise DuplicateLabelError instead of letting a later
                       label definition replace an earlier one
        verbose: Show info and debug records on the command line
        dump: Print the diagnostic dump after a successful CLI run
    """
    strict_labels: bool = False
    verbose: bool = False
    dump: bool = True

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """Create a config from TINY32_* environment variables."""
        return cls(
            strict_labels=_env_flag("TINY32_STRICT_LABELS"),
            verbose=_env_flag("TINY32_VERBOSE"),
            dump=not _env_flag("TINY32_NO_DUMP"),
        )

    def with_overrides(self, **changes) -> "AssemblerConfig":
        """
        Return a copy with the given fields replaced.

        None values are ignored, so unset CLI options keep the current value.
        """
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
