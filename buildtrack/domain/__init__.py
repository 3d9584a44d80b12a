"""
Pure derivation and aggregation logic.

Nothing in this package touches the database: callers pass plain row dicts
(as produced by the models' ``to_dict``) and get plain dicts back.
"""
