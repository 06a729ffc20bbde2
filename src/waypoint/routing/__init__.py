"""Routing — converters, template compiler, route table and parameter binder.

Routes are declared during setup, compiled into an immutable snapshot as
they are inserted, and frozen before serving.
"""
