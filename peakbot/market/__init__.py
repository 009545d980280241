"""
Market data module.

Price tracking with rolling extrema, the monitored-instrument watchlist and
normalization of raw exchange ticker payloads.
"""
