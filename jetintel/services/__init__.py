"""
Aggregation services: profile building, relationship graphs and model
market trends.
"""
