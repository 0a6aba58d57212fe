"""
HTTP binding for the butterfly ratings backend.
"""
