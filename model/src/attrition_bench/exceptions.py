from __future__ import annotations


class OversamplingError(ValueError):
    """
    Base class for every error raised by the SMOTE oversampler.

    All of these mean the caller passed something unusable (bad config, too few
    minority rows, un-encoded features). Retrying the same call will fail again.
    """


class InvalidConfiguration(OversamplingError):
    """rate/k are not positive, or the inputs do not line up."""


class InsufficientMinoritySamples(OversamplingError):
    """Fewer than k + 1 minority rows, so k neighbours cannot be found."""


class EmptyDataset(OversamplingError):
    """The training partition has no rows."""


class DistanceComputationError(OversamplingError):
    """A feature cannot be used in a distance (non-numeric and not declared categorical, or missing)."""


class ThresholdTuningError(ValueError):
    """Predicted probabilities / labels cannot be scanned for a decision threshold."""
