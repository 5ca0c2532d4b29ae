"""
Exceptions raised by the tabular Q-learning package.
"""


class TabQError(Exception):
    """Base class for every error raised by tabq."""


class ConfigurationError(TabQError, ValueError):
    """
    Invalid hyperparameter (epsilon outside [0, 1], alpha <= 0, ...).
    Raised when a trainer, schedule or config is built, never mid-run.
    """


class EnvironmentStepError(TabQError, RuntimeError):
    """
    The environment rejected a state/action or failed to sample a transition.
    Aborts the running episode and the whole training run.
    """


class EvaluationError(TabQError, KeyError):
    """A policy was queried on a state it does not know."""

    def __str__(self) -> str:
        # KeyError repr-quotes its message
        return str(self.args[0]) if self.args else ""
