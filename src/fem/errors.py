"""Error types shared by the finite element and characteristics code."""


class PreconditionError(RuntimeError):
    """Integrity check failed: malformed mesh or unstable simulation. Aborts the run."""


def require(condition, message: str):
    """Raise PreconditionError with ``message`` unless ``condition`` holds."""
    if not condition:
        raise PreconditionError(message)
