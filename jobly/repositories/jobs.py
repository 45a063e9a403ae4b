"""
Jobs Repository.

Responsibilities:
- CRUD operations for the jobs table.
- Filtered listing by title, salary, equity and company.

Non-Responsibilities:
- No company data beyond the owning handle.

Invariant:
A job always belongs to an existing company; the handle never changes.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Optional

from ..errors import ConflictError, NotFoundError, ValidationError
from ..schema import MAX_INT, validate_job, validate_job_filters, validate_job_update
from ..sql import CONTAINS, EQUALS, FLAG, MIN, FilterSpec, build_filtered_query, build_update_clause, placeholder
from .base import BaseRepository, numeric_to_float, tracked

# title, salary and equity are stored under their own names
FIELD_NAMES = MappingProxyType({})

FILTERS = (
    FilterSpec("title", "title", CONTAINS),
    FilterSpec("minSalary", "salary", MIN),
    FilterSpec("hasEquity", "equity", FLAG),
    FilterSpec("companyHandle", "company_handle", EQUALS),
)

COLUMNS = 'id, title, salary, equity, company_handle AS "companyHandle"'

BASE_SELECT = f"SELECT {COLUMNS} FROM jobs"


def _equity_param(value: Any) -> Any:
    # sqlite3 cannot bind Decimal
    return numeric_to_float(value)


def _require_known_id(job_id: Any) -> None:
    """Ids outside the INTEGER range cannot match a row."""
    if isinstance(job_id, int) and not isinstance(job_id, bool) and not 1 <= job_id <= MAX_INT:
        raise NotFoundError(f"No job: {job_id}")


class JobRepository(BaseRepository):
    """Related functions for jobs."""

    entity = "jobs"

    def _to_record(self, row) -> Dict[str, Any]:
        record = dict(row)
        if "equity" in record:
            record["equity"] = numeric_to_float(record["equity"])
        return record

    @tracked("create")
    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a job from data and return it.

        data should be {title, salary, equity, companyHandle} plus an optional
        id; without one the database assigns it.

        Returns {id, title, salary, equity, companyHandle}

        Raises:
            ValidationError: On missing or malformed fields
            ConflictError: If a job with the given id exists
            NotFoundError: If the company does not exist
        """
        errors = validate_job(data)
        if errors:
            raise ValidationError("Invalid job data", errors)

        job_id = data.get("id")
        if job_id is not None:
            duplicate = self._fetch_one("SELECT id FROM jobs WHERE id = :p1", [job_id])
            if duplicate:
                raise ConflictError(f"Duplicate job: {job_id}")

        handle = data["companyHandle"]
        company = self._fetch_one("SELECT handle FROM companies WHERE handle = :p1", [handle])
        if company is None:
            raise NotFoundError(f"No company: {handle}")

        columns = ["title", "salary", "equity", "company_handle"]
        values = [data["title"], data.get("salary"), _equity_param(data.get("equity")), handle]
        if job_id is not None:
            columns.insert(0, "id")
            values.insert(0, job_id)
        column_list = ", ".join(columns)
        markers = ", ".join(placeholder(i) for i in range(1, len(values) + 1))

        try:
            job = self._write(
                f"""INSERT INTO jobs ({column_list})
                    VALUES ({markers})
                    RETURNING {COLUMNS}""",
                values,
                conflict_message=f"Duplicate job: {job_id}" if job_id is not None else "Job conflicts with an existing row",
            )
        except ConflictError:
            # the company may have been removed since the check above
            if self._fetch_one("SELECT handle FROM companies WHERE handle = :p1", [handle]) is None:
                raise NotFoundError(f"No company: {handle}")
            raise
        self.logger.info("Job created", id=job["id"], company=handle)
        return job

    @tracked("find_all")
    def find_all(self, criteria: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Find all jobs, optionally filtered.

        criteria may include {title, minSalary, hasEquity, companyHandle}.
        hasEquity=True keeps jobs with non-zero equity; False does not filter.

        Returns [{id, title, salary, equity, companyHandle}, ...] ordered by id.
        """
        criteria = dict(criteria or {})
        errors = validate_job_filters(criteria)
        if errors:
            raise ValidationError("Invalid job filter", errors)

        sql, values = build_filtered_query(BASE_SELECT, criteria, FILTERS, order_by="id")
        return self._fetch_all(sql, values)

    @tracked("get")
    def get(self, job_id: int) -> Dict[str, Any]:
        _require_known_id(job_id)
        job = self._fetch_one(f"{BASE_SELECT} WHERE id = :p1", [job_id])
        if job is None:
            raise NotFoundError(f"No job: {job_id}")
        return job

    @tracked("update")
    def update(self, job_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial update: only the supplied fields change.

        data can include {title, salary, equity}; None clears salary or equity.

        Returns {id, title, salary, equity, companyHandle}
        """
        errors = validate_job_update(data)
        if errors:
            raise ValidationError("Invalid job data", errors)
        _require_known_id(job_id)

        data = dict(data)
        if "equity" in data:
            data["equity"] = _equity_param(data["equity"])

        set_clause, values = build_update_clause(data, FIELD_NAMES)
        id_idx = placeholder(len(values) + 1)

        job = self._write(
            f"""UPDATE jobs
                SET {set_clause}
                WHERE id = {id_idx}
                RETURNING {COLUMNS}""",
            [*values, job_id],
            conflict_message=f"Conflicting job update: {job_id}",
        )
        if job is None:
            raise NotFoundError(f"No job: {job_id}")

        self.logger.info("Job updated", id=job_id, fields=list(data))
        return job

    @tracked("remove")
    def remove(self, job_id: int) -> None:
        _require_known_id(job_id)
        result = self._write(
            "DELETE FROM jobs WHERE id = :p1 RETURNING id",
            [job_id],
            conflict_message=f"Job still referenced: {job_id}",
        )
        if result is None:
            raise NotFoundError(f"No job: {job_id}")

        self.logger.info("Job removed", id=job_id)
