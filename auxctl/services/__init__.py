"""
Services behind the auxctl CLI.

Each subpackage owns one concern: the service registry, command synthesis,
version discovery, native installation, command templates and the
orchestration facade that ties them to the execution backends.
"""
