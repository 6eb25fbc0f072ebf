"""
Infrastructure adapters

Concrete implementations of the core ports: Playwright sessions, local
filesystem, document backends, status channels and configuration.
"""
