"""Core configuration, database, auth and external client modules."""
