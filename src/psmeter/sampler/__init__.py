"""Periodic samplers and the scheduler that drives them."""
