"""
Reusable object lifecycle abstractions.

Includes the once-initialized LazyCell and the LazySingleton base class
built on top of it.
"""
