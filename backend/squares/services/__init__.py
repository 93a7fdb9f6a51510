"""Squares game services: identity, square ledger, pick lock, lifecycle,
winners and capacity.

HTTP routes and socket handlers import from here, keeping transport concerns
separated from the rules that govern who may hold which square and when.
"""
