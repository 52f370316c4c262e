# strangify/adapters/__init__.py

"""Input sources and output sinks.

Sources turn stdin or a filesystem target into raw unit content; sinks write
transformed units back to stdout or to derived sibling files.
"""
