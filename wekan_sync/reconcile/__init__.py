"""Reconciliation of Wekan cards against pull request state and token usage.

The runs live in ``merge_check`` and ``token_accumulation``; the building
blocks they share (field lookup, token arithmetic, card location, pull
request references and aggregation) each have their own module.
"""
