# Repositories package init
"""
PDF Notes Backend - Repositories Layer
========================================

What:  Persistence access for note metadata (the "metadata store").
How:   Repositories wrap an AsyncSession and expose intent-level operations
       (create, get, list, delete) instead of raw queries.

Repository Inventory:
    - NoteRepository: the only writer of the `notes` table
"""
