# =============================================================================
# conftest.py - Shared Test Fixtures
# =============================================================================
# Fixtures used across the mpcasm test modules.
#
# Every test starts from a clean process configuration: MPCASM_* environment
# variables are removed and the cached default config is dropped, so tests
# never see each other's settings or the developer's shell environment.
# =============================================================================

from pathlib import Path

import pytest

from mpcasm.assembler import MappingTable
from mpcasm.config import set_default_config

# Mapping used by tests that need more than the built-in table
FULL_MAPPING = """\
# Test instruction set
HLT       : 03
MOV A, X  : 04
MOV A, B  : 08
ADD A, X  : 0B
AND A, X  : 10
CMP X     : 14
CMP A, X  : 18
JMP X     : 50
JSR X     : 58
BR X      : 80
BRZ X     : 84
BRN X     : 88
"""


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate each test from environment-provided configuration."""
    for name in ("MPCASM_CARRY_ADJUST", "MPCASM_MAPPING", "MPCASM_OUTPUT"):
        monkeypatch.delenv(name, raising=False)
    set_default_config(None)
    yield
    set_default_config(None)


@pytest.fixture
def full_mapping() -> MappingTable:
    """Built-in table extended with the test instruction set."""
    table = MappingTable()
    table.load_string(FULL_MAPPING, "test.conf")
    return table


@pytest.fixture
def mapping_file(tmp_path) -> Path:
    """The test instruction set written to a mapping file."""
    path = tmp_path / "mapping.conf"
    path.write_text(FULL_MAPPING)
    return path
