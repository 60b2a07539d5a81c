"""licensesentinel: license compliance auditing for third-party dependencies."""

__version__ = "0.1.0"
