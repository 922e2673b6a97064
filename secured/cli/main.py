from __future__ import annotations

import argparse
import importlib
import json
import logging
from pathlib import Path
from typing import Any, Optional

from secured.contract_store import ContractStore
from secured.core.annotations import AnnotationLookup
from secured.core.decision import DENY, Authentication
from secured.core.engine import SecuredAuthorizationManager
from secured.core.errors import SecuredError, ValidationError
from secured.core.invocation import MethodInvocation
from secured.core.metadata_table import METADATA_SCHEMA, TableAnnotationLookup
from secured.resources import contracts_examples_dir, contracts_schemas_dir


def _format_cli_error(e: Exception) -> str:
    if isinstance(e, SecuredError):
        return str(e)
    return "error: {}".format(e)


def _import_target(spec: str) -> Any:
    """
    Import "module:Qualname" (e.g. "billing.service:InvoiceService.void").
    """
    module_name, sep, qualname = spec.partition(":")
    if not sep or not module_name or not qualname:
        raise ValidationError(code="target.invalid", message=f"Expected module:Qualname, got: {spec}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ValidationError(code="target.not_found", message=f"Cannot import module: {module_name}") from e
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ValidationError(code="target.not_found", message=f"{spec} has no attribute {part}") from e
    return obj


def _build_manager(args: argparse.Namespace) -> SecuredAuthorizationManager:
    lookup: Optional[AnnotationLookup] = None
    if args.metadata:
        lookup = TableAnnotationLookup.from_file(Path(args.metadata))
    return SecuredAuthorizationManager(lookup=lookup)


def _build_invocation(args: argparse.Namespace) -> MethodInvocation:
    method = _import_target(args.target)
    target_class = _import_target(args.type) if args.type else None
    if target_class is not None and not isinstance(target_class, type):
        raise ValidationError(code="target.invalid", message=f"--type must name a class: {args.type}")
    if target_class is None:
        return MethodInvocation.of(method)
    return MethodInvocation(method=method, target_class=target_class)


def cmd_check_contracts(_args: argparse.Namespace) -> int:
    store = ContractStore(contracts_schemas_dir())
    store.load()

    schema_errors = store.check_schemas()
    if schema_errors:
        print("Schema validation failed:")
        for name, err in schema_errors:
            print("- {}: {}".format(name, err))
        return 1

    ok = True
    for example in sorted(contracts_examples_dir().glob("method_security.example.*")):
        errs = store.validate_file(METADATA_SCHEMA, example)
        if errs:
            ok = False
            print("Example {} failed validation:".format(example.name))
            for e in errs:
                print("  - {}".format(e))

    if not ok:
        return 1
    print("Contracts OK")
    return 0


def cmd_check_metadata(args: argparse.Namespace) -> int:
    store = ContractStore(contracts_schemas_dir())
    store.load()
    errs = store.validate_file(METADATA_SCHEMA, Path(args.metadata))
    if errs:
        print("Metadata {} failed validation:".format(args.metadata))
        for e in errs:
            print("  - {}".format(e))
        return 1
    print("Metadata OK")
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    authorities = sorted(manager.get_authorities(_build_invocation(args)))
    if args.json:
        print(json.dumps({"target": args.target, "authorities": authorities}, ensure_ascii=False, indent=2))
    elif authorities:
        for a in authorities:
            print(a)
    else:
        print("(not secured)")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    auth = Authentication(principal=args.principal, authorities=frozenset(args.authority or []))
    result = manager.check(lambda: auth, _build_invocation(args))
    out = {
        "target": args.target,
        "decision": result.decision,
        "reason_codes": result.reason_codes,
        "summary": result.summary,
        "authorities": sorted(result.authorities),
    }
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0 if result.decision != DENY else 2


def _add_target_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("target", help="Method to inspect, as module:Qualname")
    p.add_argument("--type", help="Runtime type the method is invoked on, as module:Qualname")
    p.add_argument("--metadata", help="Metadata table (YAML/JSON) used instead of @secured decorators")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="secured", description="Method security metadata tools")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_check_contracts = sub.add_parser("check-contracts", help="Validate shipped schemas and examples")
    p_check_contracts.set_defaults(func=cmd_check_contracts)

    p_check_metadata = sub.add_parser("check-metadata", help="Validate a metadata table against the schema")
    p_check_metadata.add_argument("metadata", help="Path to a metadata table (YAML/JSON)")
    p_check_metadata.set_defaults(func=cmd_check_metadata)

    p_resolve = sub.add_parser("resolve", help="Print the authorities required to call a method")
    _add_target_args(p_resolve)
    p_resolve.add_argument("--json", action="store_true", help="Output JSON")
    p_resolve.set_defaults(func=cmd_resolve)

    p_check = sub.add_parser("check", help="Decide a call for an identity holding the given authorities")
    _add_target_args(p_check)
    p_check.add_argument("--principal", default="cli", help="Principal name (default: cli)")
    p_check.add_argument("--authority", action="append", help="Granted authority (repeatable)")
    p_check.set_defaults(func=cmd_check)

    ns = parser.parse_args(argv)
    try:
        logging.basicConfig(level=str(ns.log_level).upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        return int(ns.func(ns))
    except Exception as e:  # noqa: BLE001
        print(_format_cli_error(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
