"""Per-window feature estimators: covariance spectrum, dimension proxy, GFP."""
