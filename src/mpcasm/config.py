"""
mpcasm Configuration
====================

Assembler settings. Configuration can come from:
- Default values (defined here)
- Environment variables
- Command-line options (applied by the CLI on top of the above)

The mapping file is looked up in the current directory by default, the
way the logic-circuit toolchain ships ``mapping.conf`` next to the
program being assembled.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os

from mpcasm.isa import ALU_CARRY_ADJUST

# Carry adjustments the hardware can need for back branches
VALID_CARRY_ADJUSTS = (1, 2)


@dataclass
class AssemblerConfig:
    """
    Configuration for an assembly run.

    Attributes:
        carry_adjust: Back-branch carry compensation (default: 2)
        mapping_file: Mapping file to load if present (default: mapping.conf)
        use_default_mapping_file: Load ``mapping_file`` automatically when it
            exists (default: True)
        default_output: Output file when none is given (default: ram.b)
    """

    carry_adjust: int = ALU_CARRY_ADJUST
    mapping_file: Path = field(default_factory=lambda: Path("mapping.conf"))
    use_default_mapping_file: bool = True
    default_output: Path = field(default_factory=lambda: Path("ram.b"))

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create AssemblerConfig from environment variables.

        Environment variables (all optional):
            MPCASM_CARRY_ADJUST: Back-branch carry adjustment (1 or 2)
            MPCASM_MAPPING: Mapping file path
            MPCASM_OUTPUT: Default output file

        Returns:
            AssemblerConfig with values from environment variables
        """
        config = cls()

        if carry := os.environ.get("MPCASM_CARRY_ADJUST"):
            try:
                value = int(carry)
            except ValueError:
                pass  # Ignore invalid values
            else:
                if value in VALID_CARRY_ADJUSTS:
                    config.carry_adjust = value

        if mapping := os.environ.get("MPCASM_MAPPING"):
            config.mapping_file = Path(mapping)

        if output := os.environ.get("MPCASM_OUTPUT"):
            config.default_output = Path(output)

        return config

    # =========================================================================
    # Helpers
    # =========================================================================

    def find_mapping_file(self) -> Optional[Path]:
        """Return the mapping file to load, or None if there is none."""
        if self.use_default_mapping_file and self.mapping_file.is_file():
            return self.mapping_file
        return None


# =============================================================================
# Default Configuration Instance
# =============================================================================

_default_config: Optional[AssemblerConfig] = None


def get_default_config() -> AssemblerConfig:
    """
    Get the default configuration.

    Creates from environment variables on first access.
    Can be overridden by calling set_default_config().
    """
    global _default_config
    if _default_config is None:
        _default_config = AssemblerConfig.from_env()
    return _default_config


def set_default_config(config: Optional[AssemblerConfig]) -> None:
    """
    Set the default configuration (None restores lazy loading from the
    environment).
    """
    global _default_config
    _default_config = config
