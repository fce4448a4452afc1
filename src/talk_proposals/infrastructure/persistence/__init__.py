"""
Persistence Adapters

    - sqlalchemy: relational store (repositories + unit of work)
    - redis: connection pools and read cache
"""
