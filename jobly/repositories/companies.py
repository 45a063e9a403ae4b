"""
Companies Repository.

Responsibilities:
- CRUD operations for the companies table.
- Filtered listing by name and employee count.

Non-Responsibilities:
- No transport concerns (status codes, serialization).

Invariant:
Untrusted values only ever reach the database as bound parameters.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Optional

from ..errors import ConflictError, NotFoundError, ValidationError
from ..schema import validate_company, validate_company_filters, validate_company_update
from ..sql import MAX, MIN, CONTAINS, FilterSpec, build_filtered_query, build_update_clause, placeholder
from .base import BaseRepository, numeric_to_float, tracked

FIELD_NAMES = MappingProxyType({
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
})

FILTERS = (
    FilterSpec("name", "name", CONTAINS),
    FilterSpec("minEmployees", "num_employees", MIN),
    FilterSpec("maxEmployees", "num_employees", MAX),
)

COLUMNS = ('handle, name, description, '
           'num_employees AS "numEmployees", logo_url AS "logoUrl"')

BASE_SELECT = f"SELECT {COLUMNS} FROM companies"


class CompanyRepository(BaseRepository):
    """Related functions for companies."""

    entity = "companies"

    @tracked("create")
    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a company from data and return it.

        data should be {handle, name, description, numEmployees, logoUrl};
        numEmployees and logoUrl are optional.

        Raises:
            ValidationError: On missing or malformed fields
            ConflictError: If the handle (or name) is already taken
        """
        errors = validate_company(data)
        if errors:
            raise ValidationError("Invalid company data", errors)

        handle = data["handle"]
        duplicate = self._fetch_one("SELECT handle FROM companies WHERE handle = :p1", [handle])
        if duplicate:
            raise ConflictError(f"Duplicate company: {handle}")

        company = self._write(
            f"""INSERT INTO companies
                (handle, name, description, num_employees, logo_url)
                VALUES (:p1, :p2, :p3, :p4, :p5)
                RETURNING {COLUMNS}""",
            [handle, data["name"], data["description"], data.get("numEmployees"), data.get("logoUrl")],
            conflict_message=f"Duplicate company: {handle}",
        )
        self.logger.info("Company created", handle=handle)
        return company

    @tracked("find_all")
    def find_all(self, criteria: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Find all companies, optionally filtered.

        criteria may include {name, minEmployees, maxEmployees}; name matches
        case-insensitively anywhere in the company name.

        Returns [{handle, name, description, numEmployees, logoUrl}, ...]
        ordered by name.
        """
        criteria = dict(criteria or {})
        errors = validate_company_filters(criteria)
        if errors:
            raise ValidationError("Invalid company filter", errors)

        sql, values = build_filtered_query(BASE_SELECT, criteria, FILTERS, order_by="name")
        return self._fetch_all(sql, values)

    @tracked("get")
    def get(self, handle: str) -> Dict[str, Any]:
        """
        Given a company handle, return data about the company.

        Returns {handle, name, description, numEmployees, logoUrl, jobs}
        where jobs is [{id, title, salary, equity, companyHandle}, ...]
        """
        company = self._fetch_one(f"{BASE_SELECT} WHERE handle = :p1", [handle])
        if company is None:
            raise NotFoundError(f"No company: {handle}")

        jobs = self._fetch_all(
            """SELECT id, title, salary, equity, company_handle AS "companyHandle"
               FROM jobs
               WHERE company_handle = :p1
               ORDER BY id""",
            [handle],
        )
        for job in jobs:
            job["equity"] = numeric_to_float(job["equity"])
        company["jobs"] = jobs
        return company

    @tracked("update")
    def update(self, handle: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial update: only the supplied fields change.

        data can include {name, description, numEmployees, logoUrl}; None
        clears numEmployees or logoUrl.

        Returns {handle, name, description, numEmployees, logoUrl}
        """
        errors = validate_company_update(data)
        if errors:
            raise ValidationError("Invalid company data", errors)

        set_clause, values = build_update_clause(data, FIELD_NAMES)
        handle_idx = placeholder(len(values) + 1)

        company = self._write(
            f"""UPDATE companies
                SET {set_clause}
                WHERE handle = {handle_idx}
                RETURNING {COLUMNS}""",
            [*values, handle],
            conflict_message=f"Company name already in use: {data.get('name')}",
        )
        if company is None:
            raise NotFoundError(f"No company: {handle}")

        self.logger.info("Company updated", handle=handle, fields=list(data))
        return company

    @tracked("remove")
    def remove(self, handle: str) -> None:
        """Delete the company and, by cascade, its jobs."""
        result = self._write(
            "DELETE FROM companies WHERE handle = :p1 RETURNING handle",
            [handle],
            conflict_message=f"Company still referenced: {handle}",
        )
        if result is None:
            raise NotFoundError(f"No company: {handle}")

        self.logger.info("Company removed", handle=handle)
