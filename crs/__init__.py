"""Clinical record search: search translation and result-graph expansion."""
