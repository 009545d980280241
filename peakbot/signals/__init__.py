"""
Signal generation module.

Derives buy signals from the rise over a tracked low and sell signals from
the drop below a held position's running peak.
"""
