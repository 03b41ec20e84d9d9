"""Pure domain rules (no I/O): enums, URL validation, token generation."""
