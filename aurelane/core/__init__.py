"""Configuration, logging, metrics and tracing for the Aurelane client."""
