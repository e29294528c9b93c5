"""Errors raised by heatdist"""


class HeatDistError(Exception):
    pass


class ConfigurationError(HeatDistError, ValueError):
    """The discretization or solver options can not be used; detected before any solve"""


class ConvergenceError(HeatDistError, RuntimeError):
    """An iterative solve did not reach its tolerance within its iteration budget"""

    def __init__(self, message, iterations=None, residual=None):
        super(ConvergenceError, self).__init__(message)
        self.iterations = iterations
        self.residual = residual
