"""Predictors.

Resolved lazily through `predictor_registry` so scikit-learn is only imported
when a predictor is built.
"""
