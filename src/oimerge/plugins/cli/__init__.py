"""
Click commands: each module exposes a top-level `cli` command.
"""
