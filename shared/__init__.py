"""
Shared Kernel

Framework-light building blocks used by every booking context: value
objects, domain events, the rejection taxonomy, the unit of work and the
in-process message bus.
"""
