"""
Graze WebFinger - RFC 7033 discovery endpoint

This module implements a small WebFinger service. Given an account identifier such as
`acct:user@example.com`, it answers with a JSON Resource Descriptor listing links to the
account's profile page, avatar, OpenID Connect issuer and social profiles.

Key Components:
- app: Web application layer with request handlers, server configuration and background tasks
- model: The hot-reloaded configuration store and the health gauge
- resolve: Resource normalization, lookup and response construction

Architecture Overview:
1. Configuration:
   - Accounts and their attributes live in a human-editable YAML file
   - The file is reloaded on a fixed interval; a failed reload keeps the previous snapshot

2. Resolution:
   - Requests read one immutable snapshot and never observe a partial reload
   - Relation-filtered queries return a single link, or a host announcement for the
     OpenID Connect issuer relation
"""
