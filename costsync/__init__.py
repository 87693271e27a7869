"""CostSync - live cost figures for sales presentations.

Loads a cost record from a remote endpoint (or a locally selected file),
recomputes derived totals, and keeps bound display targets up to date.
"""

__version__ = "0.1.0"
