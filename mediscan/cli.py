# ============================================
# MediScan Command Line
# ============================================
"""
Command-line entry point.

Usage:
    mediscan upload scan1.png scan2.jpg --type brain --name "Jane Roe" \\
        --phone "+1 555 0100" --email jane@example.com
    mediscan patients --search jane --risk high
    mediscan reports --type lungs
    mediscan analytics --range 30d
    mediscan report-pdf REPORT_ID --output report.pdf
    mediscan security

Results are printed as JSON. Exit code is 0 on success, 1 on failure.
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from mediscan.auth import AuthorizationError, StaticAuthProvider
from mediscan.models import GENDERS, RISK_LEVELS, SCAN_TYPES
from mediscan.analysis.pdf import report_filename
from mediscan.services import Services, build_services, security_overview
from mediscan.services.analytics import TIME_RANGES
from mediscan.services.patients import patient_summary, search_patients
from mediscan.services.reports import risk_counts, search_reports
from mediscan.services.uploads import UploadItem
from mediscan.validation import PatientDetails


logger = logging.getLogger("mediscan")


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


# =============================================================================
# SUBCOMMANDS
# =============================================================================

def cmd_upload(args, services: Services) -> int:
    details = PatientDetails(
        name=args.name,
        phone=args.phone,
        email=args.email,
        age=args.age,
        gender=args.gender,
        address=args.address,
    )

    items = []
    for path in args.files:
        items.append(UploadItem(
            content=Path(path).read_bytes(),
            filename=Path(path).name,
            scan_type=args.type,
            patient=details,
        ))

    with tqdm(total=len(items), desc="Processing scans") as bar:
        result = services.uploader.upload(items, progress=lambda outcome: bar.update(1))

    _print_json({
        "succeeded": len(result.succeeded),
        "failed": len(result.failed),
        "outcomes": [o.to_dict() for o in result.outcomes],
    })
    return 0 if result.all_succeeded else 1


def cmd_patients(args, services: Services) -> int:
    resolved = services.patients.resolve_all()
    patients = services.patients.to_records(resolved.value)
    matches = search_patients(patients, args.search, args.gender, args.risk)

    _print_json({
        "source": resolved.source,
        "summary": patient_summary(patients),
        "patients": [p.to_dict() for p in matches],
    })
    return 0


def cmd_reports(args, services: Services) -> int:
    resolved = services.reports.resolve_all()
    reports = services.reports.to_records(resolved.value)
    matches = search_reports(reports, args.search, args.type, args.risk)

    _print_json({
        "source": resolved.source,
        "riskCounts": risk_counts(reports),
        "reports": [r.to_dict() for r in matches],
    })
    return 0


def cmd_analytics(args, services: Services) -> int:
    _print_json(services.analytics.get_analytics(args.range))
    return 0


def cmd_report_pdf(args, services: Services) -> int:
    report = services.reports.get_by_id(args.report_id)
    if report is None:
        logger.error(f"Report {args.report_id} not found")
        return 1

    output = Path(args.output) if args.output else Path(report_filename(report))
    output.write_bytes(services.reports.download_pdf(report))
    _print_json({"report": report.id, "output": str(output)})
    return 0


def cmd_security(args, services: Services) -> int:
    try:
        overview = security_overview(StaticAuthProvider(), api=services.scans.api)
    except AuthorizationError as e:
        logger.error(f"Access denied: {e}")
        return 1
    _print_json(overview)
    return 0


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediscan",
        description="Medical scan records, simulated analysis and reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload and analyze scan files for a new patient")
    upload.add_argument("files", nargs="+", help="Scan image files")
    upload.add_argument("--type", required=True, choices=SCAN_TYPES, help="Scan type")
    upload.add_argument("--name", required=True, help="Patient name")
    upload.add_argument("--phone", required=True, help="Patient phone number")
    upload.add_argument("--email", required=True, help="Patient email")
    upload.add_argument("--age", type=int, help="Patient age")
    upload.add_argument("--gender", choices=GENDERS, help="Patient gender")
    upload.add_argument("--address", default="", help="Patient address")
    upload.add_argument("--workers", type=int, default=4, help="Parallel uploads")
    upload.set_defaults(handler=cmd_upload)

    patients = sub.add_parser("patients", help="List and search patients")
    patients.add_argument("--search", default="", help="Name, email or id")
    patients.add_argument("--gender", default="all", choices=("all",) + GENDERS)
    patients.add_argument("--risk", default="all", choices=("all",) + RISK_LEVELS)
    patients.set_defaults(handler=cmd_patients)

    reports = sub.add_parser("reports", help="List and search reports")
    reports.add_argument("--search", default="", help="Patient name or id")
    reports.add_argument("--type", default="all", choices=("all",) + SCAN_TYPES)
    reports.add_argument("--risk", default="all", choices=("all",) + RISK_LEVELS)
    reports.set_defaults(handler=cmd_reports)

    analytics = sub.add_parser("analytics", help="Dashboard analytics")
    analytics.add_argument("--range", default="7d", choices=tuple(TIME_RANGES))
    analytics.set_defaults(handler=cmd_analytics)

    pdf = sub.add_parser("report-pdf", help="Download a report PDF")
    pdf.add_argument("report_id", help="Report id")
    pdf.add_argument("--output", help="Output path (default derived from the report)")
    pdf.set_defaults(handler=cmd_report_pdf)

    security = sub.add_parser("security", help="Security overview (admin only)")
    security.set_defaults(handler=cmd_security)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    services = build_services(max_workers=getattr(args, "workers", 4))
    return args.handler(args, services)


if __name__ == "__main__":
    sys.exit(main())
