"""Command line application for the CactusPi LED panel."""
