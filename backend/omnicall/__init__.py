"""
OmniCall - Backend Application Package

Practice-management backend and softphone core for medical clinics:
- Customer directory keyed by phone number
- Call session state machine for the agent softphone
- REST API and voice webhooks
"""

__version__ = "0.1.0"
