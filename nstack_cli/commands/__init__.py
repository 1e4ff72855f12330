"""
CLI Commands.

Every user command is a small dataclass; the dispatcher plans each one
into a server call and a formatter for its result.
"""
