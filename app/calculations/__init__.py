"""
Proposal Calculation Engine

Pure calculation modules for off-plan real estate proposals: payment
schedule, flow summary, return scenarios and investment comparatives.
"""

from app.calculations import clock, deal, irr, schedule, flow, scenarios, comparatives, proposal

__all__ = [
    "clock",
    "deal",
    "irr",
    "schedule",
    "flow",
    "scenarios",
    "comparatives",
    "proposal",
]
