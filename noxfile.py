import nox

# Standard locations for the code
LOCATIONS = [
    "src",
    "tests",
]


@nox.session(python=["3.10", "3.11", "3.12"])
def tests(session: nox.Session) -> None:
    """Run the complete test suite with coverage."""
    session.install("-e", ".[dev]")
    session.run(
        "pytest", "--cov=mongo_testkit", "-m", "not integration", *session.posargs
    )


@nox.session(python=["3.12"])
def integration(session: nox.Session) -> None:
    """Run the tests against a real MongoDB started by testcontainers."""
    session.install("-e", ".[dev,integration]")
    session.run("pytest", "-m", "integration", *session.posargs)


@nox.session(python=["3.10", "3.11", "3.12"])
def autoformat(session: nox.Session) -> None:
    """Fix linting issues and format code."""
    session.install("ruff")
    session.run("ruff", "check", "--fix", ".")
    session.run("ruff", "format", ".")


@nox.session(python=["3.10", "3.11", "3.12"])
def lint(session: nox.Session) -> None:
    """Run ruff linter and formatter checks."""
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(python=["3.10", "3.11", "3.12"])
def type_check(session: nox.Session) -> None:
    """Run mypy static type analysis."""
    session.install("-e", ".[dev]")
    session.install("mypy")
    session.run("mypy")


@nox.session(python=["3.10", "3.11", "3.12"])
def arch_check(session: nox.Session) -> None:
    """Verify architectural boundaries using pytest-archon."""
    session.install("-e", ".[dev]")
    session.run("pytest", "tests/architecture", *session.posargs)


@nox.session(python=["3.10", "3.11", "3.12"])
def dead_code(session: nox.Session) -> None:
    """Scan for unused code using vulture."""
    session.install("vulture")
    session.run("vulture", "--exclude", ".nox", *LOCATIONS)
