import json
import tempfile
import unittest
from pathlib import Path

import yaml

from secured.core.decision import Authentication
from secured.core.engine import SecuredAuthorizationManager
from secured.core.errors import AnnotationConfigurationError, ValidationError
from secured.core.invocation import MethodInvocation
from secured.core.metadata_table import TableAnnotationLookup


class Catalog:
    def remove(self, sku):
        return sku

    def browse(self):
        return []


class ArchivedCatalog(Catalog):
    def remove(self, sku):
        return None


def _name(obj) -> str:
    return f"{__name__}:{obj.__qualname__}"


class TestTableAnnotationLookup(unittest.TestCase):
    def test_method_and_type_entries(self) -> None:
        lookup = TableAnnotationLookup(
            methods={_name(Catalog.remove): ["CATALOG_ADMIN"]},
            types={_name(Catalog): ["CATALOG_USER"]},
        )
        self.assertEqual(lookup.find_method_annotation(Catalog.remove, Catalog).authorities, frozenset({"CATALOG_ADMIN"}))
        self.assertIsNone(lookup.find_method_annotation(Catalog.browse, Catalog))
        self.assertEqual(lookup.find_type_annotation(Catalog).authorities, frozenset({"CATALOG_USER"}))

    def test_engine_uses_table_metadata(self) -> None:
        lookup = TableAnnotationLookup(
            methods={_name(Catalog.remove): ["CATALOG_ADMIN"]},
            types={_name(Catalog): ["CATALOG_USER"]},
        )
        manager = SecuredAuthorizationManager(lookup=lookup)
        user = Authentication(principal="carol", authorities=frozenset({"CATALOG_USER"}))

        self.assertTrue(manager.check(lambda: user, MethodInvocation.of(Catalog().browse)).granted)
        self.assertEqual(manager.check(lambda: user, MethodInvocation.of(Catalog().remove, "sku-1")).decision, "deny")
        # Unlisted override inherits the base declaration.
        self.assertEqual(
            manager.get_authorities(MethodInvocation.of(ArchivedCatalog().remove, "sku-1")),
            frozenset({"CATALOG_ADMIN"}),
        )

    def test_lookup_starts_at_the_named_function(self) -> None:
        lookup = TableAnnotationLookup(
            methods={
                _name(Catalog.remove): ["CATALOG_ADMIN"],
                _name(ArchivedCatalog.remove): ["ARCHIVIST"],
            }
        )
        found = lookup.find_method_annotation(Catalog.remove, ArchivedCatalog)
        # The declaration is level 0 here: the call site names Catalog.remove itself.
        self.assertEqual(found.authorities, frozenset({"CATALOG_ADMIN"}))

    def test_from_file_yaml(self) -> None:
        doc = {
            "version": 1,
            "methods": {_name(Catalog.remove): ["CATALOG_ADMIN", "OPS"]},
            "types": {_name(Catalog): ["CATALOG_USER"]},
        }
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "security.yml"
            p.write_text(yaml.safe_dump(doc), encoding="utf-8")
            lookup = TableAnnotationLookup.from_file(p)

        self.assertEqual(lookup.find_method_annotation(Catalog.remove).authorities, frozenset({"CATALOG_ADMIN", "OPS"}))

    def test_from_file_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "security.json"
            p.write_text(json.dumps({"version": 1, "types": {_name(Catalog): ["CATALOG_USER"]}}), encoding="utf-8")
            lookup = TableAnnotationLookup.from_file(p)

        self.assertEqual(lookup.find_type_annotation(ArchivedCatalog).authorities, frozenset({"CATALOG_USER"}))

    def test_invalid_document_is_rejected(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            TableAnnotationLookup.from_document({"version": 2, "methods": {"not a name": []}})
        self.assertEqual(cm.exception.code, "metadata.invalid")
        self.assertTrue(cm.exception.data["errors"])

    def test_unparsable_files_are_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cases = {
                "broken.yml": "methods: [\n",
                "broken.json": "{\"version\": 1,",
                "security.toml": "version = 1\n",
            }
            for filename, content in cases.items():
                p = Path(td) / filename
                p.write_text(content, encoding="utf-8")
                with self.assertRaises(ValidationError) as cm:
                    TableAnnotationLookup.from_file(p)
                self.assertEqual(cm.exception.code, "metadata.invalid")
                self.assertIn("error", cm.exception.data)

    def test_missing_file(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            TableAnnotationLookup.from_file(Path("/nonexistent/security.yml"))
        self.assertEqual(cm.exception.code, "metadata.not_found")


class Mixed:
    def act(self):
        return None


class MixedLeft(Mixed):
    def act(self):
        return None


class MixedRight(Mixed):
    def act(self):
        return None


class MixedBoth(MixedLeft, MixedRight):
    def act(self):
        return None


class TestTableAmbiguity(unittest.TestCase):
    def test_conflicting_bases_on_same_level(self) -> None:
        lookup = TableAnnotationLookup(
            methods={
                _name(MixedLeft.act): ["LEFT"],
                _name(MixedRight.act): ["RIGHT"],
                _name(Mixed.act): ["BASE"],
            }
        )
        with self.assertRaises(AnnotationConfigurationError):
            lookup.find_method_annotation(MixedBoth.act, MixedBoth)


if __name__ == "__main__":
    unittest.main()
