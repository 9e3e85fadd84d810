"""
Command line entry point: reconcile an intent document against a code base.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from intent_check.core.checker import IntentChecker
from intent_check.core.config import IntentCheckConfig, load_config
from intent_check.core.errors import ConfigurationError, IntentLoadError, IntentValidationError
from intent_check.core.intent import (
    CURRENT_INTENT_VERSION,
    EXAMPLE_FEATURE,
    load_intent,
    normalize_intent,
    scaffold_intent,
    validate_intent,
    write_intent,
)
from intent_check.core.report import format_report
from intent_check.core.report_diff import diff_reports, format_diff

EXIT_OK = 0
EXIT_DRIFT = 1
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 3


def _absolute(value: Optional[str]) -> Optional[str]:
    # CLI paths are relative to the working directory, not to the config file.
    return str(Path(value).resolve()) if value else None


def _load_config(args: argparse.Namespace) -> IntentCheckConfig:
    overrides: Dict[str, Any] = {
        "intent_file": _absolute(getattr(args, "intent", None)),
        "scan_dir": _absolute(getattr(args, "dir", None)),
    }
    return load_config(config_path=args.config, cli_args=overrides)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _print_validation_errors(error: IntentValidationError) -> None:
    print(f"❌ Intent document {error.source} is invalid:", file=sys.stderr)
    for message in error.errors:
        print(f"   - {message}", file=sys.stderr)


def _load_previous_report(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _run_check(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        config = _load_config(args)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    checker = IntentChecker(config)
    try:
        intent = checker.load()
    except IntentValidationError as e:
        _print_validation_errors(e)
        return EXIT_VALIDATION_ERROR
    except IntentLoadError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    try:
        files = checker.scan()
    except NotADirectoryError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    report = checker.check(intent, files, intent_file=config.intent_file, show_progress=args.progress)

    fmt = args.format or config.report.format
    print(format_report(report, fmt))

    if args.diff:
        try:
            previous = _load_previous_report(args.diff)
        except (OSError, json.JSONDecodeError) as e:
            print(f"❌ Could not read previous report {args.diff}: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        diff = diff_reports(report, previous)
        print(json.dumps(diff.to_dict(), indent=2) if fmt == "json" else format_diff(diff))

    output = args.out or config.report.output
    if output:
        output_path = config.resolve(output) if not args.out else Path(args.out)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
        logging.info(f"Report written to {output_path}")

    return EXIT_DRIFT if report["drift"]["hasDrift"] else EXIT_OK


def _run_validate(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        config = _load_config(args)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    intent_path = config.intent_path()
    try:
        raw = load_intent(intent_path)
    except IntentLoadError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    result = validate_intent(raw)
    if not result.valid:
        _print_validation_errors(IntentValidationError(result.errors, source=str(intent_path)))
        return EXIT_VALIDATION_ERROR

    print(f"✅ {intent_path} is valid ({len(raw.get('features', []))} features)")
    return EXIT_OK


def _run_init(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        config = _load_config(args)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    target = config.intent_path()
    if target.exists() and not args.force:
        print(f"❌ {target} already exists. Use --force to overwrite.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    checker = IntentChecker(config)
    try:
        discovered = checker.runner.analyze_files(checker.scan())
    except OSError as e:
        logging.warning(f"Scan failed, writing a template instead: {e}")
        discovered = []

    document = scaffold_intent(discovered, name=Path.cwd().name)
    if document["features"] == [EXAMPLE_FEATURE]:
        print("No routes discovered. Created template with example feature.", file=sys.stderr)
    else:
        print(f"Discovered {len(document['features'])} route(s) from source code.", file=sys.stderr)

    target.parent.mkdir(parents=True, exist_ok=True)
    write_intent(target, document)
    print(f"✅ Created {target}")
    return EXIT_OK


def _run_migrate(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        config = _load_config(args)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    intent_path = config.intent_path()
    try:
        raw = load_intent(intent_path)
    except IntentLoadError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    if raw.get("version") == CURRENT_INTENT_VERSION:
        print(f"{intent_path} is already v{CURRENT_INTENT_VERSION}.")
        return EXIT_OK

    write_intent(intent_path, normalize_intent(raw))
    print(f"✅ Migrated {intent_path} from v{raw.get('version') or '0.1'} to v{CURRENT_INTENT_VERSION}.")
    return EXIT_OK


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--intent", help="Path to the intent document (default: intent.json)")
    parser.add_argument("--config", help="Path to configuration YAML file (default: intent-check.config.yaml)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging on stderr.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intent-check",
        description="intent-check: compare declared features and constraints against the code base."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Check the code base against the intent document")
    _add_common_flags(check)
    check.add_argument("--dir", help="Directory to scan (default: .)")
    check.add_argument("--out", help="Write the JSON report to this file.")
    check.add_argument("--format", choices=["text", "json", "summary"], default=None,
                       help="Output format (default: report.format from config, else text).")
    check.add_argument("--diff", help="Compare against a previously written JSON report.")
    check.add_argument("--progress", action="store_true", help="Show a progress bar while analyzing files.")
    check.set_defaults(func=_run_check)

    validate = subparsers.add_parser("validate", help="Validate the intent document without scanning")
    _add_common_flags(validate)
    validate.set_defaults(func=_run_validate)

    init = subparsers.add_parser("init", help="Write a starter intent document from the routes found in the code base")
    init.add_argument("--config", help="Path to configuration YAML file (default: intent-check.config.yaml)")
    init.add_argument("--verbose", action="store_true", help="Enable debug logging on stderr.")
    init.add_argument("--dir", help="Directory to scan (default: .)")
    init.add_argument("--force", action="store_true", help="Overwrite an existing intent document.")
    init.set_defaults(func=_run_init)

    migrate = subparsers.add_parser("migrate", help="Upgrade the intent document to the current version")
    _add_common_flags(migrate)
    migrate.set_defaults(func=_run_migrate)

    return parser


def main(argv=None):
    """Main entry point for intent-check."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except Exception as e:
        print(f"\n❌ An unexpected error occurred: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        sys.exit(EXIT_RUNTIME_ERROR)


if __name__ == "__main__":
    main()
