"""Package catalogue adapters."""
