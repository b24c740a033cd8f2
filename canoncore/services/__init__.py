"""Business logic services.

Import services from their modules; the pure tree and progress helpers are
also imported by the repositories, so this package stays import-free.
"""
