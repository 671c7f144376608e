"""Identity facts: versioned, optionally immutable user attributes."""
