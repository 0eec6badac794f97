"""Analysis configuration for the MVI engine.

`MVIConfig` collects every recognised option with the reference defaults:
200 ms windows on a 50 ms stride, the four canonical bands, an 8-scale
log-spaced entropy ladder for the dimension proxy and a 0.5 decision
threshold. It can be built from a plain mapping (e.g. the `analysis` section
of a YAML file loaded with `utils.config_loader.load_config`).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .errors import ConfigurationError
from .records import DEFAULT_BANDS, FrequencyBand

CENTERING_MODES = ("channel", "spatial")
SCALE_SPACINGS = ("log", "linear")
DEFAULT_N_SCALES = {"log": 8, "linear": 50}


@dataclass(frozen=True)
class DimensionConfig:
    """
    Entropy-scaling ladder for the Renyi information dimension proxy.

    spacing="log": n_scales log-spaced over [0.01, 1] x median channel std.
    spacing="linear": n_scales linearly spaced over [0.1, 2] x global window std.

    When n_scales is not given it follows the spacing: 8 log-spaced widths or
    50 linear ones.
    """

    n_scales: Optional[int] = None
    spacing: str = "log"
    entropy_tol: float = 1e-3

    def __post_init__(self) -> None:
        if self.n_scales is None:
            object.__setattr__(self, "n_scales", DEFAULT_N_SCALES.get(self.spacing, DEFAULT_N_SCALES["log"]))

    def validate(self) -> None:
        if self.spacing not in SCALE_SPACINGS:
            raise ConfigurationError(f"dimension.spacing must be one of {SCALE_SPACINGS}, got {self.spacing!r}")
        if int(self.n_scales) < 2:
            raise ConfigurationError("dimension.n_scales must be >= 2 to fit a slope")
        if self.entropy_tol < 0:
            raise ConfigurationError("dimension.entropy_tol must be non-negative")


@dataclass(frozen=True)
class FilterConfig:
    order: int = 4
    max_fir_order: int = 128
    global_max_fir_order: int = 256

    def validate(self) -> None:
        if int(self.order) < 1:
            raise ConfigurationError("filter.order must be >= 1")
        if int(self.max_fir_order) < 1 or int(self.global_max_fir_order) < 1:
            raise ConfigurationError("filter FIR orders must be >= 1")


@dataclass(frozen=True)
class MVIConfig:
    """centering=None lets each entry point pick its mode: "channel" for the
    validity decision, "spatial" for the band relevance ranking."""

    window_sec: float = 0.2
    step_sec: float = 0.05
    bands: Tuple[FrequencyBand, ...] = DEFAULT_BANDS
    threshold: float = 0.5
    centering: Optional[str] = None
    n_jobs: int = 1
    dimension: DimensionConfig = field(default_factory=DimensionConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)

    def validate(self) -> "MVIConfig":
        if not self.window_sec > 0 or not self.step_sec > 0:
            raise ConfigurationError("window_sec and step_sec must be positive")
        if self.centering is not None and self.centering not in CENTERING_MODES:
            raise ConfigurationError(f"centering must be one of {CENTERING_MODES}, got {self.centering!r}")
        if int(self.n_jobs) < 1:
            raise ConfigurationError("n_jobs must be >= 1")
        if not self.bands:
            raise ConfigurationError("at least one frequency band is required")
        names = [b.name for b in self.bands]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"duplicate band names: {names}")
        for b in self.bands:
            if not (0 < b.low < b.high):
                raise ConfigurationError(f"band {b.name!r} must satisfy 0 < low < high, got [{b.low}, {b.high}]")
        self.dimension.validate()
        self.filter.validate()
        return self

    def check_sfreq(self, sfreq: float) -> None:
        """Reject bands that cannot exist at this sampling rate and windows shorter than 2 samples."""
        nyquist = sfreq / 2.0
        for b in self.bands:
            if b.low >= nyquist:
                raise ConfigurationError(
                    f"band {b.name!r} starts at {b.low} Hz, at or above Nyquist ({nyquist} Hz)"
                )
        if int(round(self.window_sec * sfreq)) < 2:
            raise ConfigurationError(f"window of {self.window_sec}s holds fewer than 2 samples at {sfreq} Hz")
        if int(round(self.step_sec * sfreq)) < 1:
            raise ConfigurationError(f"step of {self.step_sec}s rounds to 0 samples at {sfreq} Hz")

    def with_default_centering(self, default: str) -> "MVIConfig":
        """Fill in the centering mode of the calling entry point when none was chosen."""
        if self.centering is not None:
            return self
        return replace(self, centering=default).validate()

    def with_bands(self, bands: Optional[Sequence[FrequencyBand] | Mapping[str, Sequence[float]]]) -> "MVIConfig":
        if bands is None:
            return self
        return replace(self, bands=parse_bands(bands)).validate()

    @classmethod
    def from_dict(cls, cfg: Optional[Mapping[str, Any]] = None) -> "MVIConfig":
        """
        Build a validated config from a mapping.

        Recognised keys: window_sec, step_sec, bands (name -> [low, high]),
        threshold, centering, n_jobs, dimension {n_scales, spacing, entropy_tol},
        filter {order, max_fir_order, global_max_fir_order}. Unknown keys are rejected.
        """
        cfg = dict(cfg or {})
        known = {"window_sec", "step_sec", "bands", "threshold", "centering", "n_jobs", "dimension", "filter"}
        unknown = sorted(set(cfg) - known)
        if unknown:
            raise ConfigurationError(f"unknown analysis options: {unknown}")
        kwargs: Dict[str, Any] = {}
        for key in ("window_sec", "step_sec", "threshold"):
            if key in cfg:
                kwargs[key] = float(cfg[key])
        if cfg.get("centering") is not None:
            kwargs["centering"] = str(cfg["centering"])
        if "n_jobs" in cfg:
            kwargs["n_jobs"] = int(cfg["n_jobs"])
        if cfg.get("bands") is not None:
            kwargs["bands"] = parse_bands(cfg["bands"])
        try:
            if cfg.get("dimension"):
                kwargs["dimension"] = DimensionConfig(**dict(cfg["dimension"]))
            if cfg.get("filter"):
                kwargs["filter"] = FilterConfig(**dict(cfg["filter"]))
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc
        return cls(**kwargs).validate()

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["bands"] = {b.name: [float(b.low), float(b.high)] for b in self.bands}
        return out


def parse_bands(bands: Sequence[FrequencyBand] | Mapping[str, Sequence[float]]) -> Tuple[FrequencyBand, ...]:
    """Accept either FrequencyBand objects or a name -> [low, high] mapping (order preserved)."""
    if isinstance(bands, Mapping):
        out = []
        for name, edges in bands.items():
            if len(edges) != 2:
                raise ConfigurationError(f"band {name!r} must be [low, high], got {edges!r}")
            out.append(FrequencyBand(str(name), float(edges[0]), float(edges[1])))
        return tuple(out)
    out = []
    for b in bands:
        if not isinstance(b, FrequencyBand):
            raise ConfigurationError(f"expected FrequencyBand, got {type(b).__name__}")
        out.append(b)
    return tuple(out)
