"""Example models shipped with ctsim."""
