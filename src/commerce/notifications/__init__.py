"""Email adapter registry.

Uses the fake adapter by default; COMMERCE_EMAIL_ADAPTER=log writes messages
to the log instead.
"""

from commerce.notifications.email_port import EmailPort

_mailer: EmailPort | None = None


def get_mailer() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _mailer
    if _mailer is None:
        from commerce.config import get_settings

        adapter = get_settings().email_adapter
        if adapter == "fake":
            from commerce.notifications.fake_email import FakeEmailAdapter

            _mailer = FakeEmailAdapter()
        elif adapter == "log":
            from commerce.notifications.log_email import LogEmailAdapter

            _mailer = LogEmailAdapter()
        else:
            raise ValueError(f"Unknown email adapter: {adapter}")
    return _mailer


def set_mailer(mailer: EmailPort) -> None:
    global _mailer
    _mailer = mailer


def reset_mailer() -> None:
    """Reset the mailer singleton (useful for testing)."""
    global _mailer
    _mailer = None
