"""HTTP routers, one per vertical; all of them are mounted under API_PREFIX."""
