"""Domain layer for ledgerrecon.

Services live in their own modules (ledgerrecon.domain.account, ...) and are
imported from there; the store imports domain entities, so this package
imports nothing eagerly.
"""
