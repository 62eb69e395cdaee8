"""HTTP layer: contracts, routers and dependency wiring."""
