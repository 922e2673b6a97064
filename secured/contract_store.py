from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema
import yaml


@dataclass(frozen=True)
class SchemaRef:
    name: str
    path: Path
    schema: Dict[str, Any]


def read_document(path: Path) -> Any:
    if path.suffix.lower() in (".yml", ".yaml"):
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    if path.suffix.lower() == ".json":
        return json.loads(path.read_text(encoding="utf-8"))
    raise ValueError(f"Unsupported document extension: {path.name}")


class ContractStore:
    """
    Loads `contracts/schemas/*.json` and provides validation helpers.

    Schemas are self-contained (no cross-file $ref), so validation needs no
    resolver.
    """

    def __init__(self, schemas_dir: Path):
        self._schemas_dir = schemas_dir
        self._schemas: Dict[str, SchemaRef] = {}

    @property
    def schemas_dir(self) -> Path:
        return self._schemas_dir

    def load(self) -> None:
        if not self._schemas_dir.exists():
            raise FileNotFoundError(str(self._schemas_dir))

        for p in sorted(self._schemas_dir.glob("*.json")):
            schema = json.loads(p.read_text(encoding="utf-8"))
            self._schemas[p.name] = SchemaRef(name=p.name, path=p, schema=schema)

    def list_schema_names(self) -> List[str]:
        return sorted(self._schemas.keys())

    def _get(self, schema_name: str) -> SchemaRef:
        ref = self._schemas.get(schema_name)
        if ref is None:
            raise KeyError(schema_name)
        return ref

    def check_schemas(self) -> List[Tuple[str, str]]:
        """
        Returns a list of (schema_name, error_message) for invalid schemas.
        """
        errors: List[Tuple[str, str]] = []
        for name in self.list_schema_names():
            ref = self._get(name)
            try:
                jsonschema.Draft202012Validator.check_schema(ref.schema)
            except jsonschema.SchemaError as e:
                errors.append((name, e.message))
        return errors

    def validate(self, schema_name: str, instance: Any) -> List[str]:
        """
        Validates an instance and returns a list of error strings (empty means valid).
        """
        ref = self._get(schema_name)
        validator = jsonschema.Draft202012Validator(ref.schema)
        return [e.message for e in sorted(validator.iter_errors(instance), key=str)]

    def validate_file(self, schema_name: str, path: Path) -> List[str]:
        return self.validate(schema_name, read_document(path))


_DEFAULT_STORE: ContractStore | None = None


def default_contracts() -> ContractStore:
    global _DEFAULT_STORE
    if _DEFAULT_STORE is None:
        from secured.resources import contracts_schemas_dir

        store = ContractStore(contracts_schemas_dir())
        store.load()
        _DEFAULT_STORE = store
    return _DEFAULT_STORE
