"""Analysis services built on the pure domain computations."""
