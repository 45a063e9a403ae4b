import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .database import get_session, init_database
from .env import get_database_url, load_env
from .errors import ConflictError, JoblyError, NotFoundError, ValidationError
from .logger import get_logger
from .repositories import CompanyRepository, JobRepository

EXIT_CODES = {
    ValidationError: 2,
    NotFoundError: 3,
    ConflictError: 4,
}


def exit_code_for(error: JoblyError) -> int:
    for kind, code in EXIT_CODES.items():
        if isinstance(error, kind):
            return code
    return 1


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _given(args: argparse.Namespace, mapping: Dict[str, str]) -> Dict[str, Any]:
    """Collect options the user actually passed, keyed by record field name."""
    data = {field: getattr(args, attr) for field, attr in mapping.items() if getattr(args, attr) is not None}
    for field in getattr(args, "clear", None) or []:
        data[field] = None
    return data


COMPANY_OPTIONS = {
    "handle": "handle",
    "name": "name",
    "description": "description",
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}

JOB_OPTIONS = {
    "id": "id",
    "title": "title",
    "salary": "salary",
    "equity": "equity",
    "companyHandle": "company_handle",
}


def cmd_init_db(args: argparse.Namespace, session=None) -> None:
    init_database(args.db)
    print(f"Initialized database: {args.db}")


def cmd_company_create(args: argparse.Namespace, session) -> None:
    _print(CompanyRepository(session).create(_given(args, COMPANY_OPTIONS)))


def cmd_company_list(args: argparse.Namespace, session) -> None:
    criteria = _given(args, {"name": "name", "minEmployees": "min_employees", "maxEmployees": "max_employees"})
    _print(CompanyRepository(session).find_all(criteria))


def cmd_company_get(args: argparse.Namespace, session) -> None:
    _print(CompanyRepository(session).get(args.handle))


def cmd_company_update(args: argparse.Namespace, session) -> None:
    options = {k: v for k, v in COMPANY_OPTIONS.items() if k != "handle"}
    _print(CompanyRepository(session).update(args.handle, _given(args, options)))


def cmd_company_remove(args: argparse.Namespace, session) -> None:
    CompanyRepository(session).remove(args.handle)
    _print({"deleted": args.handle})


def cmd_job_create(args: argparse.Namespace, session) -> None:
    _print(JobRepository(session).create(_given(args, JOB_OPTIONS)))


def cmd_job_list(args: argparse.Namespace, session) -> None:
    criteria = _given(args, {"title": "title", "minSalary": "min_salary", "companyHandle": "company_handle"})
    if args.has_equity:
        criteria["hasEquity"] = True
    _print(JobRepository(session).find_all(criteria))


def cmd_job_get(args: argparse.Namespace, session) -> None:
    _print(JobRepository(session).get(args.id))


def cmd_job_update(args: argparse.Namespace, session) -> None:
    options = {"title": "title", "salary": "salary", "equity": "equity"}
    _print(JobRepository(session).update(args.id, _given(args, options)))


def cmd_job_remove(args: argparse.Namespace, session) -> None:
    JobRepository(session).remove(args.id)
    _print({"deleted": args.id})


def load_records(data: Dict[str, List[Dict[str, Any]]], session) -> Dict[str, int]:
    """
    Insert companies, then jobs, one record at a time.

    Records that already exist are skipped. Records that fail validation or
    name an unknown company are counted as errors and the load carries on.

    Args:
        data: {"companies": [...], "jobs": [...]} in record shape
        session: Database session

    Returns:
        Counts of loaded, skipped and rejected records
    """
    logger = get_logger()
    repositories = (("companies", CompanyRepository(session)), ("jobs", JobRepository(session)))
    counts = {"companies": 0, "jobs": 0, "skipped": 0, "errors": 0}

    for kind, repository in repositories:
        for index, record in enumerate(data.get(kind, [])):
            try:
                repository.create(record)
                counts[kind] += 1
            except ConflictError:
                counts["skipped"] += 1
            except (ValidationError, NotFoundError) as e:
                counts["errors"] += 1
                logger.warning("Rejected record", kind=kind, index=index, error=e.message)

    return counts


def cmd_load(args: argparse.Namespace, session) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    counts = load_records(data, session)
    print(f"Done. companies={counts['companies']} jobs={counts['jobs']} skipped={counts['skipped']} errors={counts['errors']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobly", description="Jobly companies and jobs store")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", default=None, help="SQLAlchemy database URL (default: JOBLY_DATABASE_URL or sqlite:///data/jobly.db)")

    subparsers = parser.add_subparsers(dest="command")

    init = subparsers.add_parser("init-db", help="Create the companies and jobs tables")
    init.set_defaults(func=cmd_init_db, needs_session=False)

    load = subparsers.add_parser("load", help="Bulk-load companies and jobs from a JSON file")
    load.add_argument("--input", required=True, help='JSON file: {"companies": [...], "jobs": [...]}')
    load.set_defaults(func=cmd_load)

    # companies
    comp = subparsers.add_parser("companies", help="Manage companies")
    comp_sub = comp.add_subparsers(dest="action", required=True)

    cc = comp_sub.add_parser("create", help="Create a company")
    cc.add_argument("--handle", required=True)
    cc.add_argument("--name", required=True)
    cc.add_argument("--description", required=True)
    cc.add_argument("--num-employees", type=int)
    cc.add_argument("--logo-url")
    cc.set_defaults(func=cmd_company_create)

    cl = comp_sub.add_parser("list", help="List companies")
    cl.add_argument("--name", help="Case-insensitive substring of the name")
    cl.add_argument("--min-employees", type=int)
    cl.add_argument("--max-employees", type=int)
    cl.set_defaults(func=cmd_company_list)

    cg = comp_sub.add_parser("get", help="Show a company and its jobs")
    cg.add_argument("handle")
    cg.set_defaults(func=cmd_company_get)

    cu = comp_sub.add_parser("update", help="Partially update a company")
    cu.add_argument("handle")
    cu.add_argument("--name")
    cu.add_argument("--description")
    cu.add_argument("--num-employees", type=int)
    cu.add_argument("--logo-url")
    cu.add_argument("--clear", action="append", choices=["numEmployees", "logoUrl"], help="Set a field to null")
    cu.set_defaults(func=cmd_company_update)

    cr = comp_sub.add_parser("remove", help="Delete a company and its jobs")
    cr.add_argument("handle")
    cr.set_defaults(func=cmd_company_remove)

    # jobs
    job = subparsers.add_parser("jobs", help="Manage jobs")
    job_sub = job.add_subparsers(dest="action", required=True)

    jc = job_sub.add_parser("create", help="Create a job")
    jc.add_argument("--id", type=int, help="Explicit job id (default: assigned by the database)")
    jc.add_argument("--title", required=True)
    jc.add_argument("--salary", type=int)
    jc.add_argument("--equity", help="Fraction between 0 and 1, e.g. 0.05")
    jc.add_argument("--company-handle", required=True)
    jc.set_defaults(func=cmd_job_create)

    jl = job_sub.add_parser("list", help="List jobs")
    jl.add_argument("--title", help="Case-insensitive substring of the title")
    jl.add_argument("--min-salary", type=int)
    jl.add_argument("--has-equity", action="store_true", help="Only jobs with non-zero equity")
    jl.add_argument("--company-handle")
    jl.set_defaults(func=cmd_job_list)

    jg = job_sub.add_parser("get", help="Show a job")
    jg.add_argument("id", type=int)
    jg.set_defaults(func=cmd_job_get)

    ju = job_sub.add_parser("update", help="Partially update a job")
    ju.add_argument("id", type=int)
    ju.add_argument("--title")
    ju.add_argument("--salary", type=int)
    ju.add_argument("--equity")
    ju.add_argument("--clear", action="append", choices=["salary", "equity"], help="Set a field to null")
    ju.set_defaults(func=cmd_job_update)

    jr = job_sub.add_parser("remove", help="Delete a job")
    jr.add_argument("id", type=int)
    jr.set_defaults(func=cmd_job_remove)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    # Load .env if present (JOBLY_DATABASE_URL, JOBLY_LOG_LEVEL, ...)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    if args.db is None:
        args.db = get_database_url()

    if not getattr(args, "needs_session", True):
        args.func(args)
        return

    session = get_session(args.db)
    try:
        args.func(args, session)
    except JoblyError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if isinstance(e, ValidationError):
            for err in e.errors:
                print(f" - {err}", file=sys.stderr)
        raise SystemExit(exit_code_for(e))
    finally:
        session.close()
        get_logger().debug("Session closed", metrics=get_logger().get_metrics())


if __name__ == "__main__":
    main()
