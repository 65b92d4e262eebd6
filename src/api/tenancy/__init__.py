"""Tenancy bounded context.

Owns the lifecycle of tenant database connections: provisioning at startup
and at onboarding, the in-process registry, and per-request resolution of an
identity to its tenant database.
"""
