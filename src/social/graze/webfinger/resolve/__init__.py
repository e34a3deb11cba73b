"""
Resource Resolution

This package turns a WebFinger query (resource identifier plus optional relation filter)
into a response descriptor, reading from the active configuration snapshot.

Key Components:
- resource.py: Normalization, lookup, relation table and document construction
- __main__.py: CLI for resolving resources against a configuration file

Resolution Outcomes:
1. Full document
   - One link per recognized attribute with a non-empty value
   - Unrecognized attributes are published as properties

2. Relation-filtered document
   - A single link for the requested relation

3. OpenID Connect issuer announcement
   - No body; the issuer host is returned in the `Host` header

Any unresolved query raises ResolutionError, which the HTTP layer maps to 404.
"""
