"""
Aggregations over FARS accident tables.

Monthly fatality counts pivoted by year.
"""
