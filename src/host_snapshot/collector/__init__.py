"""Samplers that read host counters and build snapshot records."""
