"""
Order execution module.

Turns signals into effect-once exchange calls and reconciles each confirmed
result back into the position ledger.
"""
