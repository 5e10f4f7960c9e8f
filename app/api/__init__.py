"""
API module - HTTP endpoints for the inbound IPN webhook.
"""
