"""IO - wire-level concerns (stream events and SSE framing)."""
