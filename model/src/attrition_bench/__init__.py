"""Employee-attrition benchmark: LR / DT / RF with and without SMOTE, across decision thresholds."""

from .exceptions import (
    DistanceComputationError,
    EmptyDataset,
    InsufficientMinoritySamples,
    InvalidConfiguration,
    OversamplingError,
    ThresholdTuningError,
)
from .smote import SmoteConfig, SmoteOversampler, SmoteResult, oversample
from .threshold import ThresholdResult, threshold_curve, tune_threshold

__version__ = "0.1.0"
