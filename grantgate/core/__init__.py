"""
GrantGate core: data model, vesting math, clocks, crypto, canonical encoding.
"""
