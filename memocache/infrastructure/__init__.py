"""Infrastructure Layer: Contains concrete implementations and adapters.

Implements the interfaces defined in the domain layer: the in-memory
store, configuration loading, logging and console rendering.
"""
