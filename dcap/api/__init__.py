"""HTTP API for dcap."""
