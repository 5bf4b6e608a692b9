# Exceptions and warnings raised by the solvers


class NumericalWarning(UserWarning):
    """Recoverable numerical problem (regularisation, grid adjustment, ...)."""
    pass


class ConvergenceError(RuntimeError):
    """Raised when an iterative solver hits its iteration limit."""

    def __init__(self, message, it_last=None, dist=None):
        super().__init__(message)
        self.it_last = it_last
        self.dist = dist


class SingularSystemError(RuntimeError):
    """Raised when a linear system stays singular after regularisation."""
    pass


class BracketError(ValueError):
    """Raised when excess demand has no sign change on the bracket."""

    def __init__(self, message, bracket=None, values=None):
        super().__init__(message)
        self.bracket = bracket
        self.values = values


class GeneratorError(ValueError):
    """Raised when a transition matrix is not a proper generator."""
    pass


class EigenvalueError(RuntimeError):
    """Raised when the principal eigenvalue of A' is not close to zero."""
    pass
