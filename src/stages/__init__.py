"""Sync stages: resolve, dedup, submit, and the orchestrator that drives them."""
