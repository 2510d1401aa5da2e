"""Configuration and provider wiring."""
