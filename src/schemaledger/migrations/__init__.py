"""
Built-in schema migrations.

Each module defines ``VERSION`` (epoch milliseconds), ``NAME`` and async
``up``/``down`` functions. ``MigrationRegistry.from_package`` orders
them by version, never by file name.
"""
