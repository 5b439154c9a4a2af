"""
CRPT document client package.

Submits documents to the CRPT registration API while bounding the call
rate with a time-windowed gate.

Structure:
- app.main: composition root and the process-wide client.
- app.adapters: HTTPS client for the document API.
- app.documents: Document/Product records and their wire codec.
- app.ratelimit: the admission gate.
"""
