"""
Client-side helpers for the manual latency-testing harness pages
"""
