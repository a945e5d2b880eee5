"""HTTP API for shops and customers."""
