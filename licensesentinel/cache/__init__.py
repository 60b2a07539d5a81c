"""License record cache: one text file per dependency."""
