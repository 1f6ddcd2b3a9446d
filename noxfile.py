"""Nox sessions orchestrating the auth service unit suites."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import nox


PYTHON_VERSIONS = ["3.11", "3.12"]
PROJECT_ROOT = Path(__file__).parent

nox.options.sessions = [
    "tests(unit_api)",
    "tests(unit_auth)",
    "tests(unit_logging)",
]


def _install_test_requirements(session: nox.Session) -> None:
    """Install the project with its test extra inside the session environment."""

    session.install("-e", f"{PROJECT_ROOT}[test]")


def _run_suite(session: nox.Session, suite: str, targets: Iterable[str]) -> None:
    _install_test_requirements(session)

    args = ["coverage", "run", f"--context={suite}", "-m", "pytest", *targets]
    if session.posargs:
        args.extend(session.posargs)

    session.log("Running %s suite", suite)
    session.run(*args, env={"PYTHONPATH": str(PROJECT_ROOT)})
    session.run("coverage", "report", "-m")


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True, name="tests(unit_api)")
def tests_unit_api(session: nox.Session) -> None:
    """Execute HTTP middleware and route suites."""

    _run_suite(session, "api", ["tests/unit/api"])


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True, name="tests(unit_auth)")
def tests_unit_auth(session: nox.Session) -> None:
    """Execute auth core suites (hashing, tokens, revocation, sessions)."""

    _run_suite(session, "auth", ["tests/unit/auth"])


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True, name="tests(unit_logging)")
def tests_unit_logging(session: nox.Session) -> None:
    """Execute logging library suites."""

    _run_suite(session, "logging", ["tests/unit/logging"])
