"""Error type raised by every stencil renderer.

Any failure reported while resolving, parsing or evaluating a template is
translated into a single ``RenderFailure``. The original exception is kept
as ``__cause__`` so tracebacks stay intact.
"""


class RenderFailure(Exception):
    """Raised when a template cannot be rendered.

    Can be built with no arguments, a message, a cause, or both:

        RenderFailure()
        RenderFailure("template id must not be empty")
        RenderFailure(cause=exc)
        RenderFailure("while rendering mail.txt", exc)
    """

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        """Initialize the failure.

        Args:
            message: Detail message; derived from the cause when omitted
            cause: Underlying exception, if any
        """
        if message is None and cause is not None:
            message = f"{type(cause).__name__}: {cause}"

        if message is None:
            super().__init__()
        else:
            super().__init__(message)

        self.message = message
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        """Return the underlying exception, if any."""
        return self.__cause__
