from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import yaml

from ..contract_store import ContractStore, default_contracts, read_document
from .annotations import AnnotationLookup, Secured
from .errors import ValidationError
from .methods import qualified_name

logger = logging.getLogger(__name__)

METADATA_SCHEMA = "method_security.schema.json"


def _to_table(entries: Optional[Mapping[str, Iterable[str]]]) -> Dict[str, Secured]:
    return {name: Secured(value=tuple(values)) for name, values in (entries or {}).items()}


class TableAnnotationLookup(AnnotationLookup):
    """
    Metadata supplied from a table instead of decorators.

    Keys are qualified names, "module:Qualname":
      methods: {"billing.service:InvoiceService.void": ["ROLE_ADMIN"]}
      types:   {"billing.service:InvoiceService": ["ROLE_USER"]}
    """

    def __init__(
        self,
        methods: Optional[Mapping[str, Iterable[str]]] = None,
        types: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self._methods = _to_table(methods)
        self._types = _to_table(types)

    def declared(self, element: Any) -> Sequence[Secured]:
        table = self._types if isinstance(element, type) else self._methods
        annotation = table.get(qualified_name(element))
        return (annotation,) if annotation is not None else ()

    @classmethod
    def from_document(cls, doc: Any, *, store: Optional[ContractStore] = None) -> "TableAnnotationLookup":
        store = store or default_contracts()
        errors = store.validate(METADATA_SCHEMA, doc)
        if errors:
            raise ValidationError(
                code="metadata.invalid",
                message="Method security metadata does not validate against {}".format(METADATA_SCHEMA),
                data={"errors": errors},
            )
        return cls(methods=doc.get("methods"), types=doc.get("types"))

    @classmethod
    def from_file(cls, path: Path, *, store: Optional[ContractStore] = None) -> "TableAnnotationLookup":
        if not path.exists():
            raise ValidationError(code="metadata.not_found", message=f"Metadata file not found: {path}")
        try:
            doc = read_document(path)
        except (yaml.YAMLError, json.JSONDecodeError, ValueError) as e:
            raise ValidationError(
                code="metadata.invalid",
                message=f"Cannot read method security metadata: {path}",
                data={"error": repr(e)},
            ) from e
        lookup = cls.from_document(doc, store=store)
        logger.info(
            "Loaded method security metadata from %s (%d methods, %d types)",
            path,
            len(doc.get("methods") or {}),
            len(doc.get("types") or {}),
        )
        return lookup
