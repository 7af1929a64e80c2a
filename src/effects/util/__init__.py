"""Tone stages (util.* namespace)."""
