"""
Stay Finder - short-term rental availability and pricing.

Modules:
- data: Data loading and cleaning
- features: Listing quality features
- availability: Availability query engine and result rendering
"""
