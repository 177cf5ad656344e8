"""Meeting records: schemas, persistence, visibility rules, invitation
dispatch and the HTTP client proxy."""
