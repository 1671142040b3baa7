"""HTTP routers for the ProDraft API."""
