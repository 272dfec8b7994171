"""
Nomad: conversational multi-city trip planner.

This package contains:
- shared/: Common infrastructure (completion clients, logging, contracts, errors)
- conversation/: Slot-filling conversation state machine
- generation/: Progressive itinerary generation and the job registry
"""
