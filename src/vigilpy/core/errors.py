"""Exceptions raised by the vigilpy domain."""


class ValidationError(ValueError):
    """A value object or aggregate was constructed with invalid data.

    Raised at construction time only; no partially built object escapes.
    """


class AlertNotFoundError(LookupError):
    """No alert with the requested id exists in the repository."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert {alert_id} not found")
        self.alert_id = alert_id


class PublishError(RuntimeError):
    """One or more publishers failed to deliver an event.

    Attributes:
        failures: Mapping of publisher name to the exception it raised.
    """

    def __init__(self, failures: dict[str, BaseException]) -> None:
        names = ", ".join(sorted(failures))
        super().__init__(f"Event publish failed for: {names}")
        self.failures = failures
