from __future__ import annotations

from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent


def contracts_dir() -> Path:
    """
    Directory that contains shipped contract artifacts (JSON Schemas, examples).

    Assumes a filesystem-backed install (wheel or editable), not zipimport.
    """
    return _PACKAGE_DIR / "contracts"


def contracts_schemas_dir() -> Path:
    return contracts_dir() / "schemas"


def contracts_examples_dir() -> Path:
    return contracts_dir() / "examples"
