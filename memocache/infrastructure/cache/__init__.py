"""Caching Service Implementation.

Provides the in-memory implementation of the CacheStore and ComputedCache
interfaces, its JSON codec and the recurring expiry sweep.
Bounded Context: Cache Management
"""
