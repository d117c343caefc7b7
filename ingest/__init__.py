"""
Design
======

The ingest app stores BagIt packages ("OCRD-ZIPs") in the long-term archive.

General goals:

* All outcome state is stored in the database: every import attempt owns one
  TrackingRecord which is the only signal the requester gets back
* External services (identifier service, archive storage, search indexer) may
  fail at any point; anything which was created before the failure is
  compensated so that no identifier points at a package which does not exist
* Celery tasks are fire-and-forget. A task never reports back to the request
  which started it

The import process works like this:

1. The caller has extracted the uploaded ZIP into a workspace and hands the
   package directory to ``submission.accept_import``. A TrackingRecord is
   created with status PROCESSING.
2. The package is loaded with ``bagit`` and checked by the structural validator.
   All rule violations are collected and reported together; an invalid package
   never reaches an external service.
3. The indexing configuration is resolved (request parameter, then bag-info
   key, then default) and an identifier is minted with the bounded retry
   policy. The saga is dispatched and the request side returns.
4. The saga (``tasks.saga``) stores the package in the online and the offline
   vault, links it to its previous version if there is one, registers the
   combined metadata with the identifier service and adds a back-link on the
   previous identifier. The TrackingRecord becomes SUCCESS.
5. Once the stored METS file is retrievable the search indexer is notified.
   This is best effort and never changes the outcome.
6. If any of the steps in 4 fail the saga deletes the identifier, both copies
   and the chain link it created, and marks the TrackingRecord FAILED.
7. The workspace is always removed.
"""
