"""
Exception types raised by the SPONGE benchmark harness
"""


class SpongeBenchError(Exception):
    """Base class for all benchmark harness errors"""


class DataFormatError(SpongeBenchError, ValueError):
    """Expression or target input has the wrong shape or type"""


class UpstreamComputationError(SpongeBenchError, RuntimeError):
    """A SPONGE computation (filter, scoring, null model, p-values) failed"""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class PersistenceError(SpongeBenchError, OSError):
    """A benchmark bundle could not be written or read"""
