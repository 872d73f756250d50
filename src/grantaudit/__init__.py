"""grantaudit: bank statement extraction and grant tranche compliance audit."""

__version__ = "0.1.0"
