"""
NStack CLI.

Command-line interface into the NStack platform. Every remote operation
is a single signed HTTPS POST to the NStack server; see nstack_cli.client.
"""

__version__ = "0.1.0"
