import argparse
import json
import sys
from typing import Any

from openlabel.analysis.models import LabelAnalysis
from openlabel.config.settings import Settings
from openlabel.database.connection import close_pool, get_connection, init_pool
from openlabel.database.schema import apply_schema
from openlabel.logging.logger import Log
from openlabel.pipeline.analyzer import LabelAnalyzer, build_analyzer, uses_database
from openlabel.pipeline.errors import ErrorPayload, describe_failure
from openlabel.reports.models import VALID_DECISIONS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openlabel",
        description="Analyze packaged-food label photos and keep purchase reports",
    )
    sub = parser.add_subparsers(dest="command")

    analyze = sub.add_parser("analyze", help="Analyze one or more label images")
    analyze.add_argument("images", nargs="+", help="Image URL or local path")
    analyze.add_argument("--save", action="store_true", help="Save each successful analysis")
    analyze.add_argument("--user-id", default=None, help="User the saved reports belong to")
    analyze.add_argument("--saved-from", default="cli", help="Origin recorded on saved reports")

    check = sub.add_parser("check", help="Ask the chat model whether the product exists")
    check.add_argument("image", help="Image URL or local path")

    reports = sub.add_parser("reports", help="Browse saved reports")
    reports_sub = reports.add_subparsers(dest="reports_command")
    reports_sub.add_parser("list", help="List saved reports, newest first")
    show = reports_sub.add_parser("show", help="Show one report")
    show.add_argument("report_id")
    decide = reports_sub.add_parser("decide", help="Record a purchase decision")
    decide.add_argument("report_id")
    decide.add_argument("decision", choices=sorted(VALID_DECISIONS))
    decide.add_argument("--notes", default="")

    sub.add_parser("init-db", help="Create the database tables")
    return parser


def run_command(args: argparse.Namespace, analyzer: LabelAnalyzer) -> int:
    """Execute a parsed command and print its JSON result. Returns the exit status."""
    if args.command == "analyze":
        return _analyze(args, analyzer)
    if args.command == "check":
        _print(analyzer.check_product(args.image).to_dict())
        return 0
    if args.command == "reports":
        if args.reports_command == "list":
            reports = analyzer.list_reports()
            _print({"reports": [r.to_dict() for r in reports], "total": len(reports)})
        elif args.reports_command == "show":
            _print(analyzer.get_report(args.report_id).to_dict())
        elif args.reports_command == "decide":
            report = analyzer.record_purchase_decision(
                args.report_id, args.decision, args.notes
            )
            _print(report.to_dict())
        else:
            return 1
        return 0
    return 1


def _analyze(args: argparse.Namespace, analyzer: LabelAnalyzer) -> int:
    metadata = {"userId": args.user_id, "savedFrom": args.saved_from}
    status = 0
    output: list[dict[str, Any]] = []
    for ref, result in zip(args.images, analyzer.analyze_many(args.images)):
        if isinstance(result, ErrorPayload):
            status = 1
            output.append({"image": ref, **result.to_dict()})
            continue
        entry: dict[str, Any] = {"image": ref, "success": True, "data": result.to_dict()}
        if args.save:
            entry.update(_save(analyzer, result, metadata))
        output.append(entry)
    _print(output[0] if len(output) == 1 else output)
    return status


def _save(
    analyzer: LabelAnalyzer, analysis: LabelAnalysis, metadata: dict[str, Any]
) -> dict[str, Any]:
    report = analyzer.save_report(analysis, metadata)
    return {"reportId": report.id, "savedAt": report.saved_at.isoformat()}


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> None:
    """Entry point: parse args -> configure -> build analyzer -> run command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    settings = Settings()
    Log.configure(settings.log_level)

    database = uses_database(settings) or args.command == "init-db"
    analyzer: LabelAnalyzer | None = None
    if database:
        init_pool(settings)
    try:
        if args.command == "init-db":
            with get_connection() as conn:
                apply_schema(conn)
            Log.info("Database schema applied")
            return
        analyzer = build_analyzer(settings)
        status = run_command(args, analyzer)
    except Exception as exc:
        Log.error(f"Command '{args.command}' failed: {exc}")
        _print(describe_failure(exc).to_dict())
        status = 1
    finally:
        if analyzer is not None:
            analyzer.close()
        if database:
            close_pool()
    sys.exit(status)


if __name__ == "__main__":
    main()
