"""Core components for reading and decoding transaction logs."""
