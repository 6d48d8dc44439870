"""Runtime: model invocation, the tool-calling loop, agent and request sessions.

Submodules are imported directly (``toolstream.runtime.loop`` etc.) so the
foundation layer can depend on ``runtime.observability`` without cycles.
"""
