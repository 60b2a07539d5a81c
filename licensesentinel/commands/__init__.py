"""Top-level commands run over all configured apps."""
