"""Listing lifecycle services: storage, expiry, cleanup and live sync.

HTTP routes, socket handlers and the CLI import from here so transport
concerns stay out of the expiry rules.
"""
