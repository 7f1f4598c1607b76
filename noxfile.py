import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]


def _install(session: nox.Session) -> None:
    """Install the project with the test extra into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--extras",
        "test",
        external=True,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no adapters or HTTP)."""
    _install(session)
    session.run(
        "pytest",
        "tests/ordering/domain/",
        "tests/inventory/domain/",
        "tests/pricing/domain/",
        "tests/payments/domain/",
        "tests/fulfillment/domain/",
        "tests/returns/domain/",
    )
