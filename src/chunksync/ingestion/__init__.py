"""
Ingestion — turning source files and text records into identified chunks.

Sources are routed to a format engine by extension, extracted, split into
fixed-size overlapping windows and given deterministic ids.  Nothing in
this package talks to the vector store.
"""
