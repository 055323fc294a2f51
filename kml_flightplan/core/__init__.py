"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Namespaces, template table, descriptor field contract
- exceptions: Custom exception hierarchy
- package: ZIP container <-> staged directory transcoding
- templates: Read-only template package stores
"""
