# Services package init
"""
PDF Notes Backend - Services Layer
====================================

What:  Business logic between routes (HTTP) and persistence.

Service Inventory:
    - BlobStore (abstract): Where PDF bytes live
      - InlineBlobStore: bytes in the note row
      - ExternalBlobStore: bytes in files under STORAGE_ROOT
    - UploadValidator: Checks uploads before anything is written
    - NoteService: upload / list / fetch payload / delete orchestration
"""
