"""Microstate Validity Index (MVI) estimation for multichannel EEG.

Public API:
  - run_mvi, analyze_validity, analyze_band_relevance (engine entry points)
  - MVIConfig, FrequencyBand, Signal (inputs)
  - ValidityRecord, ValidityReport, RelevanceReport, MVIReport (outputs)
"""

from .validity.config import MVIConfig  # noqa: F401
from .validity.engine import analyze_band_relevance, analyze_validity, run_mvi  # noqa: F401
from .validity.errors import (  # noqa: F401
    AnalysisCancelled,
    ConfigurationError,
    InsufficientLengthError,
    InvalidSignalError,
    MVIError,
)
from .validity.records import (  # noqa: F401
    DEFAULT_BANDS,
    BandRelevanceScore,
    Diagnostic,
    FrequencyBand,
    MVIReport,
    RelevanceReport,
    Signal,
    ValidityRecord,
    ValidityReport,
)

__version__ = "0.1.0"

__all__ = [
    "run_mvi",
    "analyze_validity",
    "analyze_band_relevance",
    "MVIConfig",
    "FrequencyBand",
    "DEFAULT_BANDS",
    "Signal",
    "Diagnostic",
    "ValidityRecord",
    "BandRelevanceScore",
    "ValidityReport",
    "RelevanceReport",
    "MVIReport",
    "MVIError",
    "InvalidSignalError",
    "InsufficientLengthError",
    "ConfigurationError",
    "AnalysisCancelled",
]
