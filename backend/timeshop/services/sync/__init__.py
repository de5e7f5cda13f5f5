"""Server-side synchronization services: accounts, state reconciliation,
presence and reviews.

Route handlers and socket handlers call into these; they raise the domain
errors from ``timeshop.errors`` and never build HTTP responses themselves.
"""
