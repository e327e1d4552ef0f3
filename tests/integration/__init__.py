"""
Integration tests for the HTTP retry layer.

Test components together through the public API:
- attach/detach on explicit and default clients
- RetryClient end to end
- Retry chains over scripted transports (status, network and Retry-After)
"""
