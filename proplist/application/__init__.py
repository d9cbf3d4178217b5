"""Application layer: DTOs, input schemas, ports, mappers and use cases.

The composition root lives in :mod:`proplist.application.container`; it is
not re-exported here because it imports the storage adapters, which in turn
import the ports defined in this package.
"""
