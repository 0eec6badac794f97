"""Signal centering, window planning and band-pass filtering."""
