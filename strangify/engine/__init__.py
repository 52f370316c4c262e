# strangify/engine/__init__.py

"""Engine package providing the tokenizer and the pure strangify transform.

The engine holds no state across calls; the rule set is always passed in.
"""
