# strangify/watch/__init__.py

"""Watch-and-transform machinery.

Change detection, debouncing, the filesystem observer and the watch loop
that wires them to the transformation pipeline.
"""
