"""
Tests for the command-line interface.
"""

import json

import pytest

from jobly import __version__
from jobly.app import load_records, main
from jobly.database import get_session
from jobly.repositories import CompanyRepository, JobRepository


def run(capsys, db_url, *argv):
    main(["--db", db_url, *argv])
    return json.loads(capsys.readouterr().out)


def run_failing(capsys, db_url, *argv) -> int:
    with pytest.raises(SystemExit) as exc:
        main(["--db", db_url, *argv])
    capsys.readouterr()
    return exc.value.code


@pytest.fixture
def cli_db(db_url, capsys):
    main(["--db", db_url, "init-db"])
    assert "Initialized database" in capsys.readouterr().out
    return db_url


class TestVersion:

    def test_version(self, capsys):
        main(["--version"])
        assert capsys.readouterr().out.strip() == __version__


class TestCompanyCommands:
    """Company CRUD through the CLI."""

    def test_create_and_get(self, capsys, cli_db):
        created = run(capsys, cli_db, "companies", "create", "--handle", "acme",
                      "--name", "Acme", "--description", "Anvils", "--num-employees", "50")
        assert created == {"handle": "acme", "name": "Acme", "description": "Anvils",
                           "numEmployees": 50, "logoUrl": None}

        fetched = run(capsys, cli_db, "companies", "get", "acme")
        assert fetched == {**created, "jobs": []}

    def test_list_with_filters(self, capsys, cli_db):
        for handle, size in (("a", "5"), ("b", "50")):
            run(capsys, cli_db, "companies", "create", "--handle", handle, "--name", handle.upper(),
                "--description", "d", "--num-employees", size)

        listed = run(capsys, cli_db, "companies", "list", "--min-employees", "10")
        assert [c["handle"] for c in listed] == ["b"]

    def test_update_and_clear(self, capsys, cli_db):
        run(capsys, cli_db, "companies", "create", "--handle", "acme", "--name", "Acme",
            "--description", "Anvils", "--num-employees", "50", "--logo-url", "https://acme.io/logo.png")

        updated = run(capsys, cli_db, "companies", "update", "acme", "--name", "Acme Inc", "--clear", "logoUrl")
        assert updated["name"] == "Acme Inc"
        assert updated["logoUrl"] is None
        assert updated["numEmployees"] == 50

    def test_remove(self, capsys, cli_db):
        run(capsys, cli_db, "companies", "create", "--handle", "acme", "--name", "Acme", "--description", "d")
        assert run(capsys, cli_db, "companies", "remove", "acme") == {"deleted": "acme"}
        assert run_failing(capsys, cli_db, "companies", "get", "acme") == 3


class TestJobCommands:
    """Job CRUD through the CLI."""

    def test_create_list_update_remove(self, capsys, cli_db):
        run(capsys, cli_db, "companies", "create", "--handle", "acme", "--name", "Acme", "--description", "d")

        job = run(capsys, cli_db, "jobs", "create", "--title", "Engineer", "--salary", "100",
                  "--equity", "0.1", "--company-handle", "acme")
        assert job["equity"] == 0.1

        listed = run(capsys, cli_db, "jobs", "list", "--has-equity", "--min-salary", "50")
        assert [j["id"] for j in listed] == [job["id"]]

        updated = run(capsys, cli_db, "jobs", "update", str(job["id"]), "--clear", "equity")
        assert updated["equity"] is None
        assert run(capsys, cli_db, "jobs", "list", "--has-equity") == []

        assert run(capsys, cli_db, "jobs", "remove", str(job["id"])) == {"deleted": job["id"]}


class TestExitCodes:
    """Error kinds map to distinct exit codes."""

    def test_validation_error(self, capsys, cli_db):
        code = run_failing(capsys, cli_db, "companies", "list", "--min-employees", "100", "--max-employees", "10")
        assert code == 2

    def test_empty_update(self, capsys, cli_db):
        run(capsys, cli_db, "companies", "create", "--handle", "acme", "--name", "Acme", "--description", "d")
        assert run_failing(capsys, cli_db, "companies", "update", "acme") == 2

    def test_not_found(self, capsys, cli_db):
        assert run_failing(capsys, cli_db, "jobs", "get", "404") == 3

    def test_conflict(self, capsys, cli_db):
        args = ("companies", "create", "--handle", "acme", "--name", "Acme", "--description", "d")
        run(capsys, cli_db, *args)
        assert run_failing(capsys, cli_db, *args) == 4

    def test_error_message_on_stderr(self, capsys, cli_db):
        with pytest.raises(SystemExit):
            main(["--db", cli_db, "companies", "get", "ghost"])
        err = capsys.readouterr().err
        assert "Error: No company: ghost" in err


class TestLoad:
    """Bulk loading from JSON."""

    def test_load_command(self, capsys, cli_db, fixture_file):
        main(["--db", cli_db, "load", "--input", str(fixture_file)])
        assert "companies=2 jobs=2 skipped=0" in capsys.readouterr().out

        company = run(capsys, cli_db, "companies", "get", "acme")
        assert [j["id"] for j in company["jobs"]] == [10]

    def test_load_skips_existing(self, capsys, cli_db, fixture_file):
        main(["--db", cli_db, "load", "--input", str(fixture_file)])
        main(["--db", cli_db, "load", "--input", str(fixture_file)])
        assert "companies=0 jobs=0 skipped=4" in capsys.readouterr().out

    def test_load_missing_file(self, cli_db, tmp_path):
        with pytest.raises(SystemExit):
            main(["--db", cli_db, "load", "--input", str(tmp_path / "missing.json")])

    def test_load_records(self, engine):
        session = get_session(engine=engine)
        try:
            counts = load_records({"companies": [{"handle": "x", "name": "X", "description": ""}]}, session)
        finally:
            session.close()
        assert counts == {"companies": 1, "jobs": 0, "skipped": 0, "errors": 0}

    def test_load_continues_past_invalid_record(self, engine):
        data = {
            "companies": [
                {"handle": "a", "name": "A", "description": "first"},
                {"handle": "b", "name": "B"},
                {"handle": "c", "name": "C", "description": "third"},
            ],
            "jobs": [
                {"title": "Orphan", "companyHandle": "nobody"},
                {"title": "Engineer", "salary": 100, "companyHandle": "c"},
            ],
        }
        session = get_session(engine=engine)
        try:
            counts = load_records(data, session)
            handles = [c["handle"] for c in CompanyRepository(session).find_all()]
            titles = [j["title"] for j in JobRepository(session).find_all()]
        finally:
            session.close()

        assert counts == {"companies": 2, "jobs": 1, "skipped": 0, "errors": 2}
        assert handles == ["a", "c"]
        assert titles == ["Engineer"]

    def test_load_command_reports_errors(self, capsys, cli_db, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"companies": [{"handle": "z", "name": "Z", "numEmployees": -1, "description": ""}]}))
        main(["--db", cli_db, "load", "--input", str(path)])
        assert "companies=0 jobs=0 skipped=0 errors=1" in capsys.readouterr().out
