"""Configuration, logging, and error types shared by the client and commands."""
