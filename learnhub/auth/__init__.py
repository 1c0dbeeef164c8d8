"""Bearer token authentication of the acting student."""
