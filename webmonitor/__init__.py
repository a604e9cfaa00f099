"""Counters, states, delay histograms, counter diffs and monitor handler tables."""

__version__ = "0.1.0"