"""Routing — route table compilation and location matching.

Routes are compiled once into an ordered table and may be extended later;
matching walks that table in priority order.
"""
