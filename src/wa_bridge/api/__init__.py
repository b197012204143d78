"""
wa_bridge.api

HTTP status surface for the bridge's storage layer.
"""
