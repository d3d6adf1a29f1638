"""
This package contains the command-line packaging pipeline.

A pipeline turns parsed command-line options into a configured stream, runs it
and performs the follow-up actions (metadata export) the user asked for.
"""
