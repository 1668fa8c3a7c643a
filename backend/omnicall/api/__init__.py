"""
OmniCall - REST API

Directory endpoints under /api and system health probes.
"""
