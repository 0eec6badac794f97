"""
Test suite for the MVI engine.

Contains unit tests for windowing, filtering, spectral and dimension features,
scoring and band ranking, plus integration tests for the engine entry points,
recording loaders, report storage, the config-driven pipeline and the CLI.
"""
