"""Error taxonomy for the tiny U-Net engine."""


class TinyUNetError(Exception):
    """Base class for every error raised by the engine."""


class ShapeMismatchError(TinyUNetError, ValueError):
    """
    A tensor, vector or layer does not have the shape an operation requires.

    Raised for channel-count disagreements between a tensor and a layer,
    odd spatial sizes given to 2x pooling, spatial mismatches in channel
    concatenation, and entities built from inconsistently shaped arrays.
    """


class InitializationSingularityError(TinyUNetError, ArithmeticError):
    """The Box-Muller transform received a first uniform draw outside (0, 1)."""
