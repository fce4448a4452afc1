"""
Domain Layer - Core Business Logic

Entities, status machine, domain events, repository interfaces and the
exception taxonomy. Framework-independent and highly testable.

Architecture:
    - Clean Architecture: Domain Layer is the center, no external dependencies
    - Dependency Inversion: Domain defines interfaces, Infrastructure implements

Subdomains:
    - proposals: Proposals, reviews, tags, users and their events
    - shared: Cross-subdomain concepts (exceptions)
"""
