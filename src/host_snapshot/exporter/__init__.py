"""One-shot transports for a collected host snapshot."""
